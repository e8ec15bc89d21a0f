"""
Shared HTML layout and small rendering helpers.
"""
import html
from urllib.parse import urlencode

from fastapi.responses import HTMLResponse

from core.errors import (
    AIServiceError,
    BookDockerError,
    ExpertNotFoundError,
    PaymentError,
    PersistenceError,
    ValidationError,
)

SITE_NAME = "BookDocker GO2"


def esc(value) -> str:
    return html.escape("" if value is None else str(value), quote=True)


def status_for(exc: BookDockerError) -> int:
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, ExpertNotFoundError):
        return 404
    if isinstance(exc, PaymentError):
        return 402
    if isinstance(exc, AIServiceError):
        return 502
    if isinstance(exc, PersistenceError):
        return 500
    return 500


def error_page(exc: BookDockerError, user=None) -> HTMLResponse:
    status = status_for(exc)
    hint = ""
    if isinstance(exc, PersistenceError):
        hint = '<p class="muted">Nothing was changed. Please try again.</p>'
    body = f"""
    <div class="card form-card">
      <p class="error">{esc(exc)}</p>
      {hint}
      <p><a href="javascript:history.back()">Go back</a></p>
    </div>
    """
    return render_page("Something went wrong", body, user=user, status_code=status)


def pager_html(path: str, page, params: dict | None = None) -> str:
    """Prev/next links for a core.listing.Page."""
    if page.total_pages <= 1:
        return ""
    params = {k: v for k, v in (params or {}).items() if v}
    links = []
    if page.has_prev:
        links.append(f'<a href="{path}?{urlencode({**params, "page": page.page - 1})}">&larr; Prev</a>')
    links.append(f'<span class="muted">Page {page.page} of {page.total_pages}</span>')
    if page.has_next:
        links.append(f'<a href="{path}?{urlencode({**params, "page": page.page + 1})}">Next &rarr;</a>')
    return f'<div class="pager">{" ".join(links)}</div>'


def render_page(title: str, body: str, user=None, status_code: int = 200) -> HTMLResponse:
    """
    Shared layout: header with navigation and the signed-in expert, page body, footer.
    `user` is the current Expert or None.
    """
    if user:
        auth_links = """
          <a href="/dashboard">My profile</a>
          <a href="/my-alerts">My alerts</a>
          <a href="/logout">Logout</a>
        """
        tier = "Premium" if user.is_premium else "Free"
        signed_in_text = f"Signed in as <strong>{esc(user.email)}</strong> &middot; {tier}"
    else:
        auth_links = """
          <a href="/signup">Join as an expert</a>
          <a href="/login">Login</a>
        """
        signed_in_text = "Not signed in"

    admin_links = ""
    if user and user.is_admin:
        admin_links = '<a href="/admin">Admin</a>'

    page = f"""
    <!DOCTYPE html>
    <html>
      <head>
        <meta charset="utf-8" />
        <meta name="viewport" content="width=device-width, initial-scale=1" />
        <title>{esc(title)} - {SITE_NAME}</title>
        <style>
          * {{ box-sizing: border-box; }}
          body {{
            font-family: Georgia, "Times New Roman", serif;
            margin: 0;
            background: #f7f3ec;
            color: #1f2933;
          }}
          .page {{ max-width: 1040px; margin: 0 auto; padding: 1.5rem 1rem 3rem; }}
          header {{
            display: flex;
            justify-content: space-between;
            align-items: center;
            flex-wrap: wrap;
            gap: 0.75rem;
            margin-bottom: 1.5rem;
            padding: 0.75rem 1rem;
            background: #063542;
            color: #f7f3ec;
            border-radius: 0.75rem;
          }}
          header h1 {{ font-size: 1.3rem; margin: 0; }}
          header a {{ color: #f7f3ec; }}
          nav {{ display: flex; gap: 0.5rem; flex-wrap: wrap; }}
          nav a {{
            text-decoration: none;
            padding: 6px 10px;
            border-radius: 8px;
            background: rgba(255,255,255,0.08);
          }}
          nav a:hover {{ background: #51adc9; }}
          .signed-in {{ font-size: 0.8rem; opacity: 0.8; margin-top: 0.25rem; }}
          a {{ color: #0e7490; }}
          .card {{
            background: #fff;
            border-radius: 0.75rem;
            border: 1px solid #e5ded3;
            padding: 1rem 1.25rem;
            margin-bottom: 1rem;
          }}
          .form-card {{ max-width: 760px; margin: 0 auto 1rem; }}
          .grid {{ display: grid; grid-template-columns: repeat(auto-fill, minmax(220px, 1fr)); gap: 1rem; }}
          label {{ display: block; margin-top: 0.75rem; font-size: 0.9rem; }}
          input:not([type="checkbox"]), select, textarea {{
            width: 100%;
            padding: 0.45rem;
            margin-top: 0.25rem;
            border-radius: 0.375rem;
            border: 1px solid #cbd2d9;
            font: inherit;
          }}
          button {{
            margin-top: 1rem;
            padding: 0.6rem 1.2rem;
            border-radius: 0.5rem;
            border: none;
            background: #51adc9;
            color: #fff;
            font-weight: 600;
            cursor: pointer;
          }}
          button.secondary {{ background: #e5ded3; color: #1f2933; }}
          button.danger {{ background: #dc2626; }}
          table {{ width: 100%; border-collapse: collapse; margin-top: 1rem; font-size: 0.9rem; }}
          th, td {{ border: 1px solid #e5ded3; padding: 0.4rem 0.6rem; vertical-align: top; text-align: left; }}
          th {{ background: #efe8dc; }}
          .muted {{ color: #6b7280; font-size: 0.85rem; }}
          .error {{ color: #b91c1c; }}
          .notice {{ color: #047857; }}
          .badge {{ display: inline-block; padding: 2px 8px; border-radius: 999px; font-size: 0.75rem; background: #fde68a; }}
          .stats {{ display: flex; gap: 0.75rem; margin-bottom: 1rem; flex-wrap: wrap; }}
          .stat {{ flex: 0 0 150px; padding: 0.6rem 0.8rem; border-radius: 0.75rem; border: 1px solid #e5ded3; background: #fff; }}
          .stat .label {{ font-size: 0.75rem; color: #6b7280; }}
          .stat .value {{ font-size: 1.2rem; font-weight: 600; }}
          .pager {{ display: flex; gap: 1rem; justify-content: center; margin: 1rem 0; }}
          footer {{ margin-top: 2.5rem; padding: 1rem 0; border-top: 1px solid #e5ded3; font-size: 0.85rem; text-align: center; }}
        </style>
      </head>
      <body>
        <div class="page">
          <header>
            <div>
              <h1><a href="/" style="text-decoration:none;">{SITE_NAME}</a> &middot; {esc(title)}</h1>
              <div class="signed-in">{signed_in_text}</div>
            </div>
            <nav>
              <a href="/">Experts</a>
              <a href="/title-hive">Title Hive</a>
              <a href="/wishlist">Wishlist</a>
              {admin_links}
              {auth_links}
            </nav>
          </header>
          <main>
            {body}
          </main>
          <footer>
            <div><strong>(c) 2025 {SITE_NAME}.</strong> All rights reserved.</div>
            <div><a href="/feedback">Send feedback</a> &middot; <a href="/premium">Go Premium</a></div>
          </footer>
        </div>
      </body>
    </html>
    """
    return HTMLResponse(content=page, status_code=status_code)
