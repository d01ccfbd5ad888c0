from playground.tools.render import api_call, authenticated_call, format_python_arg, pick


def test_python_literals():
  assert format_python_arg('say "hi"\nnow') == '"say \\"hi\\"\\nnow"'
  assert format_python_arg(True) == "True"
  assert format_python_arg(False) == "False"
  assert format_python_arg(3) == "3"
  assert format_python_arg(2.5) == "2.5"
  assert format_python_arg(None) == "None"
  assert format_python_arg(["a", 1]) == '["a", 1]'
  assert format_python_arg({"k": [True]}) == '{"k": [True]}'


def test_api_call_skips_missing_arguments():
  assert api_call("spotify", "search_songs", {"query": "jazz", "page_limit": None}) == (
    'print(apis.spotify.search_songs(query="jazz"))'
  )
  assert api_call("supervisor", "show_profile") == "print(apis.supervisor.show_profile())"


def test_authenticated_call_logs_in_first():
  snippet = authenticated_call("venmo", "show_venmo_balance", "alice", "pw")

  assert snippet.splitlines() == [
    'login_result = apis.venmo.login(username="alice", password="pw")',
    'access_token = login_result["access_token"]',
    "print(apis.venmo.show_venmo_balance(access_token=access_token))",
  ]


def test_authenticated_call_with_arguments():
  snippet = authenticated_call("venmo", "create_transaction", "alice", "pw", {"amount": 10})

  assert snippet.splitlines()[-1] == "print(apis.venmo.create_transaction(access_token=access_token, amount=10))"


def test_pick_keeps_requested_order():
  assert list(pick({"b": 1, "a": 2, "c": None}, "a", "b", "c", "d")) == ["a", "b"]
