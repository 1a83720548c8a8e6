"""HTML documents for the server-rendered pages. Every dynamic value goes through ``e``."""

from html import escape
from urllib.parse import urlencode

from marketplace.db.models import (
    Agent,
    AgentStatus,
    Purchase,
    SellerApplication,
    SellerApplicationStatus,
    User,
    UserRole,
)
from marketplace.services.subscriptions import SubscriptionState


def e(value) -> str:
    return escape("" if value is None else str(value), quote=True)


ERROR_MESSAGES = {
    "invalid_credentials": "Invalid email or password.",
    "auth_callback_failed": "We couldn't complete sign in. Please try again.",
    "invalid_signup": "Enter a valid email and a password of at least 8 characters.",
    "signup_failed": "We couldn't create your account. Please try again.",
}

# Debounced search: the first run (page load) is skipped, every keystroke
# restarts the 300ms timer, then the listing is reloaded with ?search=.
SEARCH_SCRIPT = """
<script>
(function () {
  var input = document.getElementById("agent-search");
  if (!input) return;
  var timer = null;
  var mounted = false;
  function apply() {
    if (!mounted) { mounted = true; return; }
    clearTimeout(timer);
    timer = setTimeout(function () {
      var params = new URLSearchParams(window.location.search);
      var value = input.value.trim();
      if (value) { params.set("search", value); } else { params.delete("search"); }
      params.delete("page");
      var qs = params.toString();
      window.location.assign(window.location.pathname + (qs ? "?" + qs : ""));
    }, 300);
  }
  apply();
  input.addEventListener("input", apply);
})();
</script>
"""

WELCOME_SCRIPT = """
<script>
(function () {
  var params = new URLSearchParams(window.location.search);
  if (params.get("subscribed") === "true") {
    params.delete("subscribed");
    var qs = params.toString();
    window.history.replaceState(null, "", window.location.pathname + (qs ? "?" + qs : ""));
  }
  var banner = document.getElementById("welcome-banner");
  var close = document.getElementById("welcome-dismiss");
  if (banner && close) {
    close.addEventListener("click", function () { banner.remove(); });
  }
})();
</script>
"""

STYLE = """
<style>
  body { font-family: Arial, sans-serif; margin: 0; background: #f7f8fc; color: #23293b; }
  header { background: #23293b; padding: 16px 32px; }
  header a { color: #fff; margin-right: 16px; text-decoration: none; }
  main { max-width: 1080px; margin: 0 auto; padding: 32px; }
  .grid { display: grid; grid-template-columns: repeat(auto-fill, minmax(240px, 1fr)); gap: 16px; }
  .card { background: #fff; border-radius: 12px; padding: 16px; box-shadow: 0 2px 4px rgba(0,0,0,0.07); }
  .banner { background: #e6f7ee; border-radius: 8px; padding: 12px 16px; margin-bottom: 16px; }
  .error { background: #fdecee; border-radius: 8px; padding: 12px 16px; margin-bottom: 16px; }
  .guide { white-space: pre-wrap; background: #fff; padding: 16px; border-radius: 8px; }
  .video { aspect-ratio: 16 / 9; width: 100%; border: 0; border-radius: 8px; }
  label { display: block; margin-top: 12px; }
</style>
"""


def _nav(user: User | None) -> str:
    links = ['<a href="/">Home</a>', '<a href="/agents">Browse agents</a>']
    if user is None:
        links += ['<a href="/login">Log in</a>', '<a href="/signup">Sign up</a>']
    else:
        links.append('<a href="/library">Library</a>')
        if user.role in (UserRole.SELLER, UserRole.ADMIN):
            links += ['<a href="/dashboard">Dashboard</a>', '<a href="/submit-agent">Submit agent</a>']
        else:
            links.append('<a href="/become-seller">Become a seller</a>')
        if user.role == UserRole.ADMIN:
            links += ['<a href="/admin">Admin</a>', '<a href="/admin/seller-applications">Applications</a>']
        links.append(
            '<form method="post" action="/auth/logout" style="display:inline">'
            '<button type="submit">Log out</button></form>'
        )
    return "<header><nav>" + "".join(links) + "</nav></header>"


def layout(title: str, body: str, user: User | None = None, scripts: str = "") -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>{e(title)} | Agent Marketplace</title>
  {STYLE}
</head>
<body>
  {_nav(user)}
  <main>
{body}
  </main>
  {scripts}
</body>
</html>"""


def _agent_card(agent: Agent) -> str:
    thumb = (
        f'<img src="{e(agent.thumbnail_url)}" alt="" style="width:100%;border-radius:8px">'
        if agent.thumbnail_url
        else ""
    )
    category = agent.category.name if agent.category else ""
    return f"""
    <a class="card" href="/agents/{e(agent.slug)}">
      {thumb}
      <h3>{e(agent.title)}</h3>
      <p>{e(agent.short_description)}</p>
      <small>{e(category)} · ${e(agent.price)}</small>
    </a>"""


def landing_page(categories: list[dict], counts: dict[str, int], user: User | None) -> str:
    tiles = "".join(
        f"""
    <a class="card" href="/agents?{e(urlencode({'category': c['slug']}))}">
      <h3>{e(c['name'])}</h3>
      <small>{counts.get(c['slug'], 0)} agents</small>
    </a>"""
        for c in categories
    )
    body = f"""
    <h1>Automation workflows that are ready to run</h1>
    <p>Browse vetted AI agent workflows, built and documented by their sellers.</p>
    <h2>Categories</h2>
    <div class="grid">{tiles}</div>"""
    return layout("Home", body, user)


def agents_page(
    agents: list[Agent],
    *,
    search: str,
    category: str | None,
    page: int,
    total_pages: int,
    user: User | None,
) -> str:
    cards = "".join(_agent_card(a) for a in agents) or "<p>No agents match your search.</p>"

    pager = []
    base = {"search": search} if search else {}
    if category:
        base["category"] = category
    if page > 1:
        pager.append(f'<a href="/agents?{e(urlencode({**base, "page": page - 1}))}">Previous</a>')
    if page < total_pages:
        pager.append(f'<a href="/agents?{e(urlencode({**base, "page": page + 1}))}">Next</a>')

    body = f"""
    <h1>Browse agents</h1>
    <input id="agent-search" type="search" placeholder="Search agents" value="{e(search)}">
    <div class="grid" style="margin-top:16px">{cards}</div>
    <p>{" ".join(pager)}</p>"""
    return layout("Agents", body, user, scripts=SEARCH_SCRIPT)


def agent_detail_page(
    agent: Agent,
    *,
    embed_url: str | None,
    can_view_guide: bool,
    user: User | None,
) -> str:
    if embed_url:
        video = (
            f'<iframe class="video" src="{e(embed_url)}" title="Agent Demo" '
            'allow="accelerometer; autoplay; clipboard-write; encrypted-media; gyroscope; '
            'picture-in-picture" allowfullscreen></iframe>'
        )
    else:
        video = '<div class="card">No demo video available</div>'

    if can_view_guide:
        guide = f'<h2>Setup guide</h2><div class="guide">{e(agent.setup_guide)}</div>'
    else:
        guide = (
            '<div class="card"><h2>Setup guide</h2>'
            "<p>Subscribe or purchase this agent to unlock the full setup guide.</p></div>"
        )

    seller = agent.seller.name if agent.seller else ""
    body = f"""
    <h1>{e(agent.title)}</h1>
    <p>{e(agent.short_description)}</p>
    <p><small>By {e(seller)} · {e(agent.category.name if agent.category else "")} · ${e(agent.price)} · v{e(agent.version)}</small></p>
    {video}
    <h2>Workflow overview</h2>
    <p>{e(agent.workflow_overview)}</p>
    <h2>Use case</h2>
    <p>{e(agent.use_case)}</p>
    {guide}"""
    return layout(agent.title, body, user)


def _error_block(error: str | None) -> str:
    if not error:
        return ""
    return f'<div class="error">{e(ERROR_MESSAGES.get(error, error))}</div>'


def login_page(next_path: str | None, error: str | None, message: str | None) -> str:
    notice = ""
    if message == "check_email":
        notice = '<div class="banner">Check your email to confirm your account, then log in.</div>'
    hidden_next = f'<input type="hidden" name="next" value="{e(next_path)}">' if next_path else ""
    body = f"""
    <h1>Log in</h1>
    {notice}{_error_block(error)}
    <form method="post" action="/auth/login" class="card">
      {hidden_next}
      <label>Email <input type="email" name="email" required></label>
      <label>Password <input type="password" name="password" required></label>
      <button type="submit">Log in</button>
    </form>
    <p>No account? <a href="/signup">Sign up</a></p>"""
    return layout("Log in", body)


def signup_page(error: str | None) -> str:
    body = f"""
    <h1>Create an account</h1>
    {_error_block(error)}
    <form method="post" action="/auth/signup" class="card">
      <label>Name <input type="text" name="name"></label>
      <label>Email <input type="email" name="email" required></label>
      <label>Password <input type="password" name="password" minlength="8" required></label>
      <button type="submit">Sign up</button>
    </form>"""
    return layout("Sign up", body)


def forbidden_page(user: User | None) -> str:
    body = """
    <h1>Access denied</h1>
    <p>You don't have permission to view this page.</p>
    <a href="/">Back to home</a>"""
    return layout("Forbidden", body, user)


def _application_form(values: dict) -> str:
    return f"""
    <form method="post" action="/become-seller" class="card">
      <label>Full name <input type="text" name="full_name" value="{e(values.get("full_name"))}" minlength="2" required></label>
      <label>Experience with automation
        <textarea name="experience" minlength="50" required>{e(values.get("experience"))}</textarea>
      </label>
      <label>Agents you plan to sell
        <textarea name="agent_ideas" minlength="30" required>{e(values.get("agent_ideas"))}</textarea>
      </label>
      <label>Portfolio or relevant links <textarea name="relevant_links">{e(values.get("relevant_links"))}</textarea></label>
      <button type="submit">Submit application</button>
    </form>"""


def become_seller_page(
    user: User,
    application: SellerApplication | None,
    error: str | None = None,
    values: dict | None = None,
    submitted: bool = False,
) -> str:
    if application is not None and application.status == SellerApplicationStatus.PENDING_REVIEW:
        notice = '<div class="banner">Thanks! Your application was submitted.</div>' if submitted else ""
        body = f"""
    <h1>Application under review</h1>
    {notice}{_error_block(error)}
    <div class="card">
      <p>We received your application on {application.created_at:%Y-%m-%d} and will email you once it has been reviewed.</p>
    </div>"""
        return layout("Become a seller", body, user)

    rejected = ""
    if application is not None and application.status == SellerApplicationStatus.REJECTED:
        rejected = f"""
    <div class="error">
      <p>Your previous application was not approved.</p>
      <p>{e(application.rejection_reason)}</p>
      <p>You're welcome to apply again.</p>
    </div>"""
    body = f"""
    <h1>Become a seller</h1>
    <p>Sell your automation workflows to teams that need them.
    Tell us about your experience; our team reviews every application before you can submit agents.</p>
    {rejected}{_error_block(error)}
    {_application_form(values or {})}"""
    return layout("Become a seller", body, user)


def submit_agent_page(
    categories: list[dict],
    user: User,
    error: str | None = None,
    values: dict | None = None,
) -> str:
    values = values or {}
    options = "".join(
        f'<option value="{e(c["id"])}"'
        f'{" selected" if values.get("category_id") == c["id"] else ""}>{e(c["name"])}</option>'
        for c in categories
    )
    body = f"""
    <h1>Submit an agent</h1>
    {_error_block(error)}
    <form method="post" action="/submit-agent" class="card">
      <label>Title <input type="text" name="title" value="{e(values.get("title"))}" required></label>
      <label>Category
        <select name="category_id" required>
          <option value="">Select a category</option>{options}
        </select>
      </label>
      <label>Price (USD) <input type="text" name="price" value="{e(values.get("price"))}" required></label>
      <label>Short description <input type="text" name="short_description" value="{e(values.get("short_description"))}"></label>
      <label>Workflow overview <textarea name="workflow_overview">{e(values.get("workflow_overview"))}</textarea></label>
      <label>Use case <textarea name="use_case">{e(values.get("use_case"))}</textarea></label>
      <label>Setup guide <textarea name="setup_guide" required>{e(values.get("setup_guide"))}</textarea></label>
      <label>Demo video URL <input type="url" name="demo_video_url" value="{e(values.get("demo_video_url"))}"></label>
      <label>Thumbnail URL <input type="url" name="thumbnail_url" value="{e(values.get("thumbnail_url"))}"></label>
      <button type="submit">Save draft</button>
    </form>"""
    return layout("Submit agent", body, user)


DASHBOARD_NOTICES = {
    "created": "Your agent was saved as a draft.",
    "submitted": "Your agent was submitted for review.",
}


def _submit_button(agent: Agent) -> str:
    if agent.status not in (AgentStatus.DRAFT, AgentStatus.REJECTED):
        return ""
    return (
        f'<form method="post" action="/dashboard/agents/{e(agent.id)}/submit">'
        '<button type="submit">Submit for review</button></form>'
    )


def dashboard_page(
    user: User,
    agents: list[Agent],
    success: str | None,
    error: str | None = None,
) -> str:
    banner = ""
    if success in DASHBOARD_NOTICES:
        banner = f'<div class="banner">{DASHBOARD_NOTICES[success]}</div>'
    rows = "".join(
        f"""
      <tr>
        <td><a href="/agents/{e(a.slug)}">{e(a.title)}</a></td>
        <td>{e(a.status.value)}</td>
        <td>${e(a.price)}</td>
        <td>{a.view_count}</td>
        <td>{a.purchase_count}</td>
        <td>{e(a.rejection_reason) if a.status == AgentStatus.REJECTED else ""}</td>
        <td>{_submit_button(a)}</td>
      </tr>"""
        for a in agents
    )
    body = f"""
    <h1>Seller dashboard</h1>
    {banner}{_error_block(error)}
    <table class="card">
      <tr><th>Agent</th><th>Status</th><th>Price</th><th>Views</th><th>Sales</th><th>Notes</th><th></th></tr>
      {rows or '<tr><td colspan="7">You have not submitted any agents yet.</td></tr>'}
    </table>"""
    return layout("Dashboard", body, user)


def library_page(
    user: User,
    purchases: list[Purchase],
    state: SubscriptionState,
    show_welcome: bool,
) -> str:
    welcome = ""
    if show_welcome:
        welcome = """
    <div class="banner" id="welcome-banner">
      Welcome aboard! Your subscription is active and every setup guide is unlocked.
      <button type="button" id="welcome-dismiss">Dismiss</button>
    </div>"""

    if state.has_access:
        plan = "Trial" if state.is_trial else "Legacy access" if state.is_legacy else "Active subscription"
        ends = state.trial_end if state.is_trial else state.current_period_end
        plan_line = f"{plan}" + (f" until {ends:%Y-%m-%d}" if ends else "")
        if state.cancel_at_period_end:
            plan_line += " (cancels at period end)"
    else:
        plan_line = "No active subscription."

    items = "".join(
        f"""
      <li><a href="/agents/{e(p.agent.slug)}">{e(p.agent.title)}</a>
        <small>v{e(p.agent_version)} · {p.purchased_at:%Y-%m-%d}</small></li>"""
        for p in purchases
    )
    body = f"""
    <h1>Your library</h1>
    {welcome}
    <p class="card">{e(plan_line)}</p>
    <h2>Purchased agents</h2>
    <ul>{items or "<li>No purchases yet.</li>"}</ul>"""
    return layout("Library", body, user, scripts=WELCOME_SCRIPT)


def admin_page(user: User, pending: list[Agent], message: str | None) -> str:
    notice = f'<div class="banner">{e(message)}</div>' if message else ""
    rows = "".join(
        f"""
      <div class="card">
        <h3>{e(a.title)}</h3>
        <p><small>{e(a.seller.email if a.seller else "")} · {e(a.category.name if a.category else "")} · ${e(a.price)}</small></p>
        <p>{e(a.short_description)}</p>
        <form method="post" action="/admin/agents/{e(a.id)}/approve" style="display:inline">
          <button type="submit">Approve</button>
        </form>
        <form method="post" action="/admin/agents/{e(a.id)}/reject" style="display:inline">
          <input type="text" name="reason" placeholder="Rejection reason" required>
          <button type="submit">Reject</button>
        </form>
      </div>"""
        for a in pending
    )
    body = f"""
    <h1>Review queue</h1>
    {notice}
    <div class="grid">{rows or "<p>Nothing waiting for review.</p>"}</div>"""
    return layout("Admin", body, user)


def _links_block(links: str | None) -> str:
    if not links:
        return ""
    return f"<h4>Links</h4><p>{e(links)}</p>"


def admin_applications_page(
    user: User,
    pending: list[SellerApplication],
    message: str | None,
) -> str:
    notice = f'<div class="banner">{e(message)}</div>' if message else ""
    rows = "".join(
        f"""
      <div class="card">
        <h3>{e(a.full_name)}</h3>
        <p><small>{e(a.user.email if a.user else "")} · applied {a.created_at:%Y-%m-%d}</small></p>
        <h4>Experience</h4>
        <p>{e(a.experience)}</p>
        <h4>Agent ideas</h4>
        <p>{e(a.agent_ideas)}</p>
        {_links_block(a.relevant_links)}
        <form method="post" action="/admin/seller-applications/{e(a.id)}/approve" style="display:inline">
          <button type="submit">Approve</button>
        </form>
        <form method="post" action="/admin/seller-applications/{e(a.id)}/reject" style="display:inline">
          <input type="text" name="reason" placeholder="Rejection reason" minlength="10" required>
          <button type="submit">Reject</button>
        </form>
      </div>"""
        for a in pending
    )
    body = f"""
    <h1>Seller applications</h1>
    {notice}
    <div class="grid">{rows or "<p>No applications waiting for review.</p>"}</div>"""
    return layout("Seller applications", body, user)
