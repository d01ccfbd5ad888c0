"""
Default catalog of simulated-world services.

Each tool renders a short Python snippet against the world's ``apis`` object. Calls that
need an account take the username and password and log in within the same snippet.
"""

from typing import Dict, List, Optional, Sequence

from .registry import Service, SnapshotView, ToolRegistry
from .render import api_call, authenticated_call, pick
from .tool import Field, ToolDescriptor

COMPLETION_TOOL = "supervisor_complete_task"


def _credentials(label: str, username_hint: str = "username (email)") -> Dict[str, Field]:
  return {
    "username": Field("string", f"{label} {username_hint}"),
    "password": Field("string", f"{label} password"),
  }


def _public(name: str, description: str, service: str, method: str, fields: Optional[Dict[str, Field]] = None):
  fields = fields or {}
  return ToolDescriptor(
    name=name,
    description=description,
    fields=fields,
    renderer=lambda args: api_call(service, method, pick(args, *fields.keys())),
  )


def _authenticated(
  name: str,
  description: str,
  service: str,
  method: str,
  label: str,
  fields: Optional[Dict[str, Field]] = None,
  username_hint: str = "username (email)",
):
  fields = fields or {}
  all_fields = {**_credentials(label, username_hint), **fields}
  return ToolDescriptor(
    name=name,
    description=f"{description} Requires authentication.",
    fields=all_fields,
    renderer=lambda args: authenticated_call(
      service, method, args.get("username"), args.get("password"), pick(args, *fields.keys())
    ),
  )


def _login(name: str, service: str, label: str, username_hint: str = "username (email)"):
  return ToolDescriptor(
    name=name,
    description=f"Login to {label} with username and password. Returns access_token for authenticated calls.",
    fields=_credentials(label, username_hint),
    renderer=lambda args: api_call(service, "login", pick(args, "username", "password")),
  )


def _view(key: str, method: str, **arguments) -> SnapshotView:
  return SnapshotView(key, method, arguments)


BASE_TOOLS: List[ToolDescriptor] = [
  _public(
    "supervisor_show_account_passwords",
    "Show all login credentials (usernames and passwords) for the current user across all services. "
    "Returns a list of {account_name, password} objects. Call this first to get authentication details.",
    "supervisor",
    "show_account_passwords",
  ),
  _public(
    "supervisor_show_profile",
    "Show the profile information of the current supervisor/user including name, email, and other personal details.",
    "supervisor",
    "show_profile",
  ),
  _public(
    COMPLETION_TOOL,
    "Mark the current task as complete. Call this when you have finished the assigned task.",
    "supervisor",
    "complete_task",
  ),
]

# resolvable for callers that need raw code execution, never declared to the model
EXECUTE_PYTHON = ToolDescriptor(
  name="execute_python",
  description="Execute arbitrary Python code (internal use only)",
  fields={"code": Field("string", "Python code to execute")},
  renderer=lambda args: args["code"],
)

SPOTIFY = Service(
  name="spotify",
  display_name="Spotify",
  description="Music streaming service for playing, searching, and managing playlists",
  snapshot=(_view("likedSongs", "show_liked_songs"), _view("account", "show_account")),
  functions=(
    _login("spotify_login", "spotify", "Spotify"),
    _authenticated("spotify_show_liked_songs", "Get a list of songs you have liked.", "spotify", "show_liked_songs", "Spotify"),
    _authenticated("spotify_show_account", "Show the current Spotify account details.", "spotify", "show_account", "Spotify"),
    _public("spotify_search_songs", "Search for songs on Spotify.", "spotify", "search_songs",
            {"query": Field("string", "Search query for songs")}),
    _public("spotify_search_artists", "Search for artists on Spotify.", "spotify", "search_artists",
            {"query": Field("string", "Search query for artists")}),
    _public("spotify_search_playlists", "Search for playlists on Spotify.", "spotify", "search_playlists",
            {"query": Field("string", "Search query for playlists")}),
    _public("spotify_show_playlist", "Show details of a playlist including its songs.", "spotify", "show_playlist",
            {"playlist_id": Field("integer", "Playlist ID")}),
    _authenticated(
      "spotify_play_music",
      "Play a song, album, or playlist on Spotify.",
      "spotify",
      "play_music",
      "Spotify",
      {
        "song_id": Field("integer", "Song ID to play", optional=True),
        "album_id": Field("integer", "Album ID to play", optional=True),
        "playlist_id": Field("integer", "Playlist ID to play", optional=True),
      },
    ),
  ),
)

GMAIL = Service(
  name="gmail",
  display_name="Gmail",
  description="Email service for sending, receiving, and managing emails",
  snapshot=(_view("inboxThreads", "show_inbox_threads"), _view("outboxThreads", "show_outbox_threads")),
  functions=(
    _login("gmail_login", "gmail", "Gmail", "username (email address)"),
    _authenticated("gmail_show_inbox_threads", "Show email threads in the inbox.", "gmail", "show_inbox_threads", "Gmail"),
    _authenticated("gmail_show_outbox_threads", "Show sent email threads.", "gmail", "show_outbox_threads", "Gmail"),
    _authenticated("gmail_show_thread", "Show all emails of a thread.", "gmail", "show_thread", "Gmail",
                   {"email_thread_id": Field("integer", "The ID of the email thread")}),
    _authenticated(
      "gmail_send_email",
      "Send a new email.",
      "gmail",
      "send_email",
      "Gmail",
      {
        "email_addresses": Field("array", "Recipient email addresses", items=Field("string")),
        "subject": Field("string", "Email subject"),
        "body": Field("string", "Email body"),
      },
    ),
    _authenticated(
      "gmail_reply_to_email",
      "Reply to an email thread.",
      "gmail",
      "reply_to_email",
      "Gmail",
      {
        "email_id": Field("integer", "The ID of the email to reply to"),
        "body": Field("string", "Reply body"),
      },
    ),
  ),
)

VENMO = Service(
  name="venmo",
  display_name="Venmo",
  description="Payment service for sending and receiving money",
  snapshot=(_view("account", "show_account"), _view("recentTransactions", "show_transactions")),
  functions=(
    _login("venmo_login", "venmo", "Venmo", "username"),
    _authenticated("venmo_show_account", "Show the current Venmo account details.", "venmo", "show_account", "Venmo",
                   username_hint="username"),
    _authenticated("venmo_show_balance", "Show the current Venmo balance.", "venmo", "show_venmo_balance", "Venmo",
                   username_hint="username"),
    _public("venmo_search_users", "Search for a Venmo user.", "venmo", "search_users",
            {"query": Field("string", "Search query (name or email)")}),
    _authenticated(
      "venmo_create_transaction",
      "Send a payment to another user.",
      "venmo",
      "create_transaction",
      "Venmo",
      {
        "receiver_email": Field("string", "Email of the recipient"),
        "amount": Field("number", "Amount to send"),
        "description": Field("string", "Payment note", optional=True),
      },
      username_hint="username",
    ),
    _authenticated(
      "venmo_create_payment_request",
      "Request money from another user.",
      "venmo",
      "create_payment_request",
      "Venmo",
      {
        "user_email": Field("string", "Email of the user to request from"),
        "amount": Field("number", "Amount to request"),
        "description": Field("string", "Request note", optional=True),
      },
      username_hint="username",
    ),
    _authenticated(
      "venmo_show_transactions",
      "Show transaction history.",
      "venmo",
      "show_transactions",
      "Venmo",
      {"page_limit": Field("integer", "Maximum number of transactions to show", optional=True)},
      username_hint="username",
    ),
  ),
)

AMAZON = Service(
  name="amazon",
  display_name="Amazon",
  description="E-commerce service for shopping and order management",
  snapshot=(_view("orders", "show_orders"), _view("cart", "show_cart")),
  functions=(
    _login("amazon_login", "amazon", "Amazon", "email address"),
    _public("amazon_search_products", "Search for products.", "amazon", "search_products",
            {"query": Field("string", "Search query")}),
    _public("amazon_show_product", "Show details of a product.", "amazon", "show_product",
            {"product_id": Field("integer", "Product ID")}),
    _authenticated("amazon_show_cart", "Show the shopping cart.", "amazon", "show_cart", "Amazon", username_hint="email address"),
    _authenticated(
      "amazon_add_product_to_cart",
      "Add a product to the cart.",
      "amazon",
      "add_product_to_cart",
      "Amazon",
      {
        "product_id": Field("integer", "Product ID"),
        "quantity": Field("integer", "Quantity", default=1),
      },
      username_hint="email address",
    ),
    _authenticated(
      "amazon_place_order",
      "Checkout the cart and place an order.",
      "amazon",
      "place_order",
      "Amazon",
      {
        "payment_card_id": Field("integer", "Payment card ID"),
        "address_id": Field("integer", "Shipping address ID"),
      },
      username_hint="email address",
    ),
    _authenticated("amazon_show_orders", "Show past orders.", "amazon", "show_orders", "Amazon", username_hint="email address"),
  ),
)

TODOIST = Service(
  name="todoist",
  display_name="Todoist",
  description="Task management service for creating and organizing tasks",
  snapshot=(_view("projects", "show_projects"),),
  functions=(
    _login("todoist_login", "todoist", "Todoist"),
    _authenticated("todoist_show_projects", "List all projects.", "todoist", "show_projects", "Todoist"),
    _authenticated("todoist_create_project", "Create a project.", "todoist", "create_project", "Todoist",
                   {"name": Field("string", "Name of the project")}),
    _authenticated(
      "todoist_show_tasks",
      "List tasks, optionally within a project.",
      "todoist",
      "show_tasks",
      "Todoist",
      {"project_id": Field("integer", "Project ID", optional=True)},
    ),
    _authenticated(
      "todoist_create_task",
      "Add a task.",
      "todoist",
      "create_task",
      "Todoist",
      {
        "project_id": Field("integer", "Project ID"),
        "title": Field("string", "Task title"),
        "due_date": Field("string", "Due date (YYYY-MM-DD)", optional=True),
        "priority": Field("string", "Priority", enum=["p1", "p2", "p3", "p4"], optional=True),
      },
    ),
    _authenticated("todoist_complete_task", "Mark a task as completed.", "todoist", "complete_task", "Todoist",
                   {"task_id": Field("integer", "Task ID")}),
    _authenticated("todoist_delete_task", "Delete a task.", "todoist", "delete_task", "Todoist",
                   {"task_id": Field("integer", "Task ID")}),
  ),
)

SIMPLE_NOTE = Service(
  name="simple_note",
  display_name="SimpleNote",
  description="Note-taking service for creating and managing notes",
  snapshot=(_view("notes", "search_notes", query=""),),
  functions=(
    _login("simplenote_login", "simple_note", "SimpleNote", "username (email address)"),
    _authenticated("simplenote_search_notes", "Search notes.", "simple_note", "search_notes", "SimpleNote",
                   {"query": Field("string", "Search query", optional=True)}),
    _authenticated("simplenote_show_note", "Show a note.", "simple_note", "show_note", "SimpleNote",
                   {"note_id": Field("integer", "Note ID")}),
    _authenticated(
      "simplenote_create_note",
      "Create a note.",
      "simple_note",
      "create_note",
      "SimpleNote",
      {
        "title": Field("string", "Note title"),
        "content": Field("string", "Note content"),
      },
    ),
  ),
)

SPLITWISE = Service(
  name="splitwise",
  display_name="Splitwise",
  description="Expense sharing service for splitting bills with friends",
  snapshot=(
    _view("groups", "show_groups"),
    _view("activity", "show_activity"),
    _view("balances", "show_people_balance"),
  ),
  functions=(
    _login("splitwise_login", "splitwise", "Splitwise", "email address"),
    _authenticated("splitwise_show_groups", "List expense groups.", "splitwise", "show_groups", "Splitwise",
                   username_hint="email address"),
    _authenticated("splitwise_show_friends", "List friends.", "splitwise", "show_friends", "Splitwise",
                   username_hint="email address"),
    _authenticated(
      "splitwise_create_expense",
      "Add an expense split between users.",
      "splitwise",
      "create_expense",
      "Splitwise",
      {
        "description": Field("string", "Expense description"),
        "cost": Field("number", "Total cost"),
        "group_id": Field("integer", "Group ID", optional=True),
      },
      username_hint="email address",
    ),
    _authenticated("splitwise_show_expenses", "List expenses.", "splitwise", "show_expenses", "Splitwise",
                   username_hint="email address"),
  ),
)

PHONE = Service(
  name="phone",
  display_name="Phone",
  description="Phone service for contacts, calls, and SMS",
  snapshot=(
    _view("contacts", "search_contacts"),
    _view("textMessages", "search_text_messages"),
    _view("voiceMessages", "search_voice_messages"),
  ),
  login_field="phone_number",
  functions=(
    _login("phone_login", "phone", "Phone", "phone number"),
    _authenticated("phone_search_contacts", "Search contacts.", "phone", "search_contacts", "Phone",
                   {"query": Field("string", "Name or number", optional=True)}, username_hint="phone number"),
    _authenticated(
      "phone_send_text_message",
      "Send an SMS.",
      "phone",
      "send_text_message",
      "Phone",
      {
        "phone_number": Field("string", "Recipient phone number"),
        "message": Field("string", "Message text"),
      },
      username_hint="phone number",
    ),
    _authenticated("phone_show_text_messages", "Show text messages.", "phone", "search_text_messages", "Phone",
                   {"query": Field("string", "Search query", optional=True)}, username_hint="phone number"),
  ),
)

FILE_SYSTEM = Service(
  name="file_system",
  display_name="File System",
  description="File management for reading, writing, and organizing files",
  snapshot=(_view("rootDirectory", "show_directory", path="/"),),
  functions=(
    _login("filesystem_login", "file_system", "File System"),
    _authenticated("filesystem_show_directory", "List files in a directory.", "file_system", "show_directory",
                   "File System", {"directory_path": Field("string", "Directory path", default="~/")}),
    _authenticated("filesystem_show_file", "Read a file.", "file_system", "show_file", "File System",
                   {"file_path": Field("string", "File path")}),
    _authenticated(
      "filesystem_create_file",
      "Create a file with content.",
      "file_system",
      "create_file",
      "File System",
      {
        "file_path": Field("string", "File path"),
        "content": Field("string", "File content"),
      },
    ),
    _authenticated("filesystem_delete_file", "Delete a file.", "file_system", "delete_file", "File System",
                   {"file_path": Field("string", "File path")}),
  ),
)

SERVICES: List[Service] = [SPOTIFY, GMAIL, VENMO, AMAZON, TODOIST, SIMPLE_NOTE, SPLITWISE, PHONE, FILE_SYSTEM]


def default_registry() -> ToolRegistry:
  return ToolRegistry(services=SERVICES, base_tools=BASE_TOOLS, hidden_tools=[EXECUTE_PYTHON])


def generate_system_prompt(registry: ToolRegistry, service_names: Sequence[str]) -> str:
  names = registry.display_names(service_names)
  services_text = ", ".join(names) if names else "None"

  return f"""You are an AI assistant with access to various services and APIs in a simulated environment. \
Your goal is to help the user complete tasks by using the available tools.

Available services: {services_text}.

IMPORTANT: Only use tools for the services listed above. Do not attempt to use tools for services that are not available.

When you need to perform actions:
1. Use supervisor_show_account_passwords to get login credentials for services
2. Login to the required services using the credentials
3. Use the appropriate service tools to interact with APIs
4. When finished, call {COMPLETION_TOOL}

Always explain what you're doing and why. If you encounter errors, try alternative approaches or explain what went wrong."""


def default_preset(registry: ToolRegistry) -> dict:
  names = registry.service_names()
  return {
    "id": "general",
    "name": "General Agent",
    "description": "Full access to all tools",
    "enabledServices": names,
    "systemPrompt": generate_system_prompt(registry, names),
  }
