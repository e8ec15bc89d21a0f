import logging
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Form, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from app.auth_utils import get_current_user, login_redirect
from app.layout import esc, pager_html, render_page
from app.security import allow_action, attach_csrf_cookie, csrf_field, issue_csrf_token, validate_csrf
from core.ai_agent import get_admin_insights, scan_content_for_issues
from core.database import get_deleted_experts, get_recent_alert_deliveries
from core.directory import get_directory
from core.listing import ADMIN_USERS_PER_PAGE, USER_FILTERS, filter_users, paginate, platform_summary
from core.profiles import delete_experts, set_status

log = logging.getLogger(__name__)

router = APIRouter()


def _format_dt(value) -> str:
    """Render a timestamp (datetime or ISO string) as a local human-readable string."""
    if not value:
        return ""
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(str(value))
        except ValueError:
            return str(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _require_admin(request: Request):
    """Return (admin, None) or (None, response) for anonymous / non-admin visitors."""
    user, _ = get_current_user(request)
    if not user:
        return None, login_redirect()
    if not user.is_admin:
        return None, HTMLResponse("Forbidden", status_code=403)
    return user, None


def _admin_nav() -> str:
    return """
    <p class="muted">
      <a href="/admin">Overview</a> &middot;
      <a href="/admin/users">Users</a> &middot;
      <a href="/admin/alerts">Title Hive alerts</a> &middot;
      <a href="/admin/insights">AI insights</a> &middot;
      <a href="/admin/moderation">Moderation</a>
    </p>
    """


@router.get("/admin", response_class=HTMLResponse)
def admin_overview(request: Request):
    user, denied = _require_admin(request)
    if denied:
        return denied

    summary = platform_summary(get_directory().list())
    stats = "".join(
        f'<div class="stat"><div class="label">{esc(label)}</div><div class="value">{value}</div></div>'
        for label, value in (
            ("Experts", summary.total_experts),
            ("Premium", summary.premium_experts),
            ("On leave", summary.on_leave),
            ("Books", summary.total_books),
            ("Available", summary.available_books),
            ("Sold", summary.sold_books),
        )
    )

    recent_rows = ""
    for e in summary.recent_experts:
        recent_rows += f"""
        <tr>
          <td><a href="/experts/{esc(e.id)}">{esc(e.name)}</a></td>
          <td>{esc(e.email)}</td>
          <td>{esc(e.genre.value)}</td>
          <td>{esc(e.subscription_tier.value)}</td>
          <td>{_format_dt(e.created_at)}</td>
        </tr>
        """
    if not recent_rows:
        recent_rows = '<tr><td colspan="5">No experts have signed up yet.</td></tr>'

    genre_rows = "".join(
        f"<tr><td>{esc(genre)}</td><td>{count}</td></tr>" for genre, count in summary.genre_distribution[:10]
    ) or '<tr><td colspan="2">No data.</td></tr>'

    deleted_rows = ""
    for d in get_deleted_experts(limit=50):
        deleted_rows += f"""
        <tr>
          <td>{esc(d.get('expert_id'))}</td>
          <td>{esc(d.get('email'))}</td>
          <td>{esc(d.get('name'))}</td>
          <td>{esc(d.get('subscription_tier'))}</td>
          <td>{_format_dt(d.get('created_at'))}</td>
          <td>{_format_dt(d.get('deleted_at'))}</td>
        </tr>
        """
    if not deleted_rows:
        deleted_rows = '<tr><td colspan="6">No deleted experts.</td></tr>'

    body = f"""
    {_admin_nav()}
    <div class="stats">{stats}</div>
    <div class="card">
      <h2>Recent experts</h2>
      <table>
        <thead><tr><th>Name</th><th>Email</th><th>Genre</th><th>Tier</th><th>Joined</th></tr></thead>
        <tbody>{recent_rows}</tbody>
      </table>
    </div>
    <div class="card">
      <h2>Top genres</h2>
      <table>
        <thead><tr><th>Genre</th><th>Experts</th></tr></thead>
        <tbody>{genre_rows}</tbody>
      </table>
    </div>
    <div class="card">
      <h2>Deleted experts</h2>
      <table>
        <thead><tr><th>Expert ID</th><th>Email</th><th>Name</th><th>Tier</th><th>Created</th><th>Deleted</th></tr></thead>
        <tbody>{deleted_rows}</tbody>
      </table>
    </div>
    """
    return render_page("Admin", body, user=user)


@router.get("/admin/users", response_class=HTMLResponse)
def admin_users(
    request: Request,
    user_filter: str = Query("all", alias="filter"),
    q: str = "",
    tab: str = "experts",
    page: int = 1,
):
    user, denied = _require_admin(request)
    if denied:
        return denied

    if user_filter not in USER_FILTERS:
        user_filter = "all"
    if tab not in ("experts", "system"):
        tab = "experts"
    directory = get_directory()
    users = filter_users(directory.list(), user_filter, q, tab=tab)
    result = paginate(users, page, ADMIN_USERS_PER_PAGE)
    csrf_token = issue_csrf_token(request.cookies.get("csrf_token"))

    rows = ""
    for e in result.items:
        toggle = "disabled" if e.status.value == "active" else "active"
        if e.is_example or e.id == user.id:
            actions = '<span class="muted">-</span>'
            select = ""
        else:
            select = f'<input type="checkbox" name="ids" value="{esc(e.id)}" form="delete-form" />'
            actions = f"""
            <form method="post" action="/admin/users/{esc(e.id)}/status" style="margin:0;">
              <input type="hidden" name="status" value="{toggle}" />
              {csrf_field(csrf_token)}
              <button type="submit" class="secondary" style="margin:0;padding:0.2rem 0.6rem;">
                {"Disable" if toggle == "disabled" else "Enable"}
              </button>
            </form>
            """
        example = ' <span class="badge">Example</span>' if e.is_example else ""
        rows += f"""
        <tr>
          <td>{select}</td>
          <td><a href="/experts/{esc(e.id)}">{esc(e.name)}</a>{example}</td>
          <td>{esc(e.email)}</td>
          <td>{esc(e.role.value)}</td>
          <td>{esc(e.subscription_tier.value)}</td>
          <td>{esc(e.status.value)}</td>
          <td>{len(e.books)}</td>
          <td>{actions}</td>
        </tr>
        """
    if not rows:
        rows = '<tr><td colspan="8">No users match.</td></tr>'

    filter_options = "".join(
        f'<option value="{f}"{" selected" if f == user_filter else ""}>{f.title()}</option>' for f in USER_FILTERS
    )
    body = f"""
    {_admin_nav()}
    <div class="card">
      <p>
        <a href="/admin/users?tab=experts">Experts</a> &middot;
        <a href="/admin/users?tab=system">System users</a>
      </p>
      <form method="get" action="/admin/users">
        <input type="hidden" name="tab" value="{esc(tab)}" />
        <label>Filter</label>
        <select name="filter">{filter_options}</select>
        <label>Search name or email</label>
        <input type="text" name="q" value="{esc(q)}" />
        <button type="submit" class="secondary">Apply</button>
      </form>
      <p class="muted">{result.total} user(s).</p>
      <table>
        <thead>
          <tr><th></th><th>Name</th><th>Email</th><th>Role</th><th>Tier</th><th>Status</th><th>Books</th><th>Actions</th></tr>
        </thead>
        <tbody>{rows}</tbody>
      </table>
      <form id="delete-form" method="post" action="/admin/users/delete"
            onsubmit="return confirm('Permanently delete the selected experts?');">
        {csrf_field(csrf_token)}
        <button type="submit" class="danger">Delete selected</button>
      </form>
      {pager_html("/admin/users", result, {"filter": user_filter, "q": q, "tab": tab})}
    </div>
    """
    resp = render_page("Admin - Users", body, user=user)
    attach_csrf_cookie(resp, csrf_token)
    return resp


@router.post("/admin/users/{expert_id}/status")
def admin_set_status(expert_id: str, request: Request, status: str = Form(...), csrf_token: str = Form("")):
    user, denied = _require_admin(request)
    if denied:
        return denied
    if not validate_csrf(request, csrf_token):
        return HTMLResponse("Invalid or missing CSRF token.", status_code=403)
    if expert_id == user.id:
        return HTMLResponse("You cannot change your own status.", status_code=400)

    set_status(expert_id, status)
    log.info("Admin changed expert status", extra={"admin_id": user.id, "expert_id": expert_id, "status": status})
    return RedirectResponse(url="/admin/users", status_code=303)


@router.post("/admin/users/delete")
def admin_delete_users(request: Request, ids: List[str] = Form([]), csrf_token: str = Form("")):
    user, denied = _require_admin(request)
    if denied:
        return denied
    if not validate_csrf(request, csrf_token):
        return HTMLResponse("Invalid or missing CSRF token.", status_code=403)

    ids = [i for i in ids if i and i != user.id]
    deleted = delete_experts(ids)
    log.info("Admin deleted experts", extra={"admin_id": user.id, "requested": len(ids), "deleted": deleted})
    return RedirectResponse(url="/admin/users", status_code=303)


@router.get("/admin/alerts", response_class=HTMLResponse)
def admin_alerts(request: Request, status: str = ""):
    user, denied = _require_admin(request)
    if denied:
        return denied

    if status not in ("sent", "failed"):
        status = ""
    deliveries = get_recent_alert_deliveries(limit=200, status=status or None)

    rows = ""
    for d in deliveries:
        rows += f"""
        <tr>
          <td>{_format_dt(d.get('created_at'))}</td>
          <td>{esc(d.get('searcher_email') or d.get('searcher_id'))}</td>
          <td><a href="/experts/{esc(d.get('seller_id'))}">{esc(d.get('seller_id'))}</a></td>
          <td>{esc(d.get('book_title'))}</td>
          <td>{esc(d.get('book_author'))}</td>
          <td>{esc(d.get('status'))}</td>
          <td>{esc(d.get('error') or '')}</td>
        </tr>
        """
    if not rows:
        rows = '<tr><td colspan="7">No Title Hive alerts recorded.</td></tr>'

    body = f"""
    {_admin_nav()}
    <div class="card">
      <p class="muted">
        Show: <a href="/admin/alerts">All</a> &middot;
        <a href="/admin/alerts?status=sent">Sent</a> &middot;
        <a href="/admin/alerts?status=failed">Failed</a>
      </p>
      <table>
        <thead>
          <tr><th>When</th><th>Searcher</th><th>Seller</th><th>Title</th><th>Author</th><th>Status</th><th>Error</th></tr>
        </thead>
        <tbody>{rows}</tbody>
      </table>
    </div>
    """
    return render_page("Admin - Title Hive alerts", body, user=user)


def _insights_page(user, csrf_token: str, query: str = "", answer: str = "") -> HTMLResponse:
    answer_html = ""
    if answer:
        answer_html = f'<div class="card"><h3>Answer</h3><p style="white-space:pre-wrap;">{esc(answer)}</p></div>'
    body = f"""
    {_admin_nav()}
    <div class="card form-card">
      <p class="muted">Ask a question about the platform. Answers use aggregate statistics only.</p>
      <form method="post" action="/admin/insights">
        <label>Question</label>
        <textarea name="query" rows="3" maxlength="500" required>{esc(query)}</textarea>
        {csrf_field(csrf_token)}
        <button type="submit">Ask</button>
      </form>
    </div>
    {answer_html}
    """
    resp = render_page("Admin - AI insights", body, user=user)
    attach_csrf_cookie(resp, csrf_token)
    return resp


@router.get("/admin/insights", response_class=HTMLResponse)
def admin_insights_form(request: Request):
    user, denied = _require_admin(request)
    if denied:
        return denied
    return _insights_page(user, issue_csrf_token(request.cookies.get("csrf_token")))


@router.post("/admin/insights", response_class=HTMLResponse)
def admin_insights(request: Request, query: str = Form(..., max_length=500), csrf_token: str = Form("")):
    user, denied = _require_admin(request)
    if denied:
        return denied
    if not validate_csrf(request, csrf_token):
        return HTMLResponse("Invalid or missing CSRF token.", status_code=403)
    allowed, _ = allow_action("ai", request)
    if not allowed:
        return HTMLResponse("Too many AI requests. Please try again later.", status_code=429)

    answer = get_admin_insights(query, get_directory().list())
    return _insights_page(user, csrf_token, query=query, answer=answer)


def _moderation_page(user, csrf_token: str, alerts=None) -> HTMLResponse:
    results = ""
    if alerts is not None:
        rows = ""
        for a in alerts:
            rows += f"""
            <tr>
              <td><a href="/experts/{esc(a.expert_id)}">{esc(a.expert_name)}</a></td>
              <td>{esc(a.content_type)}</td>
              <td>{esc(a.flagged_content)}</td>
              <td>{esc(a.reason)}</td>
            </tr>
            """
        if not rows:
            rows = '<tr><td colspan="4">No content issues found.</td></tr>'
        results = f"""
        <div class="card">
          <h3>Scan results</h3>
          <table>
            <thead><tr><th>Expert</th><th>Field</th><th>Content</th><th>Reason</th></tr></thead>
            <tbody>{rows}</tbody>
          </table>
        </div>
        """
    body = f"""
    {_admin_nav()}
    <div class="card form-card">
      <p class="muted">Scan expert bios and spotlights against the community guidelines.</p>
      <form method="post" action="/admin/moderation">
        {csrf_field(csrf_token)}
        <button type="submit">Run content scan</button>
      </form>
    </div>
    {results}
    """
    resp = render_page("Admin - Moderation", body, user=user)
    attach_csrf_cookie(resp, csrf_token)
    return resp


@router.get("/admin/moderation", response_class=HTMLResponse)
def admin_moderation_form(request: Request):
    user, denied = _require_admin(request)
    if denied:
        return denied
    return _moderation_page(user, issue_csrf_token(request.cookies.get("csrf_token")))


@router.post("/admin/moderation", response_class=HTMLResponse)
def admin_moderation(request: Request, csrf_token: str = Form("")):
    user, denied = _require_admin(request)
    if denied:
        return denied
    if not validate_csrf(request, csrf_token):
        return HTMLResponse("Invalid or missing CSRF token.", status_code=403)
    allowed, _ = allow_action("ai", request)
    if not allowed:
        return HTMLResponse("Too many AI requests. Please try again later.", status_code=429)

    experts = [e for e in get_directory().list() if not e.is_admin]
    alerts = scan_content_for_issues(experts)
    log.info("Moderation scan finished", extra={"admin_id": user.id, "flagged": len(alerts)})
    return _moderation_page(user, csrf_token, alerts=alerts)
