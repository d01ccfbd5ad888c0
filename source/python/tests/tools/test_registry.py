import pytest

from playground.agents.errors import ToolResolutionError
from playground.tools import Service, ToolDescriptor, ToolRegistry, ToolSet


def tool(name):
  return ToolDescriptor(name=name, description=name, renderer=lambda args: "print(1)")


BASE = tool("supervisor_show_profile")
HIDDEN = tool("execute_python")
MUSIC = Service("spotify", "Spotify", "Music", (tool("spotify_login"), tool("spotify_search_songs")))
MAIL = Service("gmail", "Gmail", "Email", (tool("gmail_login"),))


@pytest.fixture
def registry():
  return ToolRegistry(services=[MUSIC, MAIL], base_tools=[BASE], hidden_tools=[HIDDEN])


class TestToolSet:
  def test_hidden_tools_resolve_but_are_not_declared(self):
    tools = ToolSet([BASE], hidden=[HIDDEN])

    assert tools.names() == ["supervisor_show_profile"]
    assert tools.resolve("execute_python") is HIDDEN
    assert "execute_python" in tools
    assert len(tools) == 1

  def test_unknown_tool(self):
    with pytest.raises(ToolResolutionError) as error:
      ToolSet([BASE]).resolve("nope")

    assert error.value.message == 'Error: Unknown function "nope"'

  def test_first_declaration_wins(self):
    other = tool("supervisor_show_profile")

    assert ToolSet([BASE, other]).resolve("supervisor_show_profile") is BASE


class TestToolRegistry:
  def test_select_enabled_services(self, registry):
    tools = registry.select(["gmail"])

    assert tools.names() == ["supervisor_show_profile", "gmail_login"]
    assert "spotify_login" not in tools

  def test_select_all_by_default(self, registry):
    assert registry.select().names() == [
      "supervisor_show_profile",
      "spotify_login",
      "spotify_search_songs",
      "gmail_login",
    ]

  def test_unknown_services_ignored(self, registry):
    assert registry.select(["slack"]).names() == ["supervisor_show_profile"]

  def test_duplicate_service(self, registry):
    with pytest.raises(ValueError):
      registry.register(MUSIC)

  def test_display_names_follow_registration_order(self, registry):
    assert registry.display_names(["gmail", "spotify"]) == ["Spotify", "Gmail"]

  def test_service_to_dict(self):
    assert MAIL.to_dict() == {
      "name": "gmail",
      "displayName": "Gmail",
      "description": "Email",
      "functions": ["gmail_login"],
    }
