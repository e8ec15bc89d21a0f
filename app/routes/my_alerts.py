from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from app.auth_utils import get_current_user, login_redirect
from app.layout import esc, render_page
from core.database import get_alert_deliveries_for_expert
from core.directory import get_directory

router = APIRouter()


def _seller_name(delivery: dict) -> str:
    # Example sellers live only in memory, so the join finds no row for them.
    if delivery.get("seller_name"):
        return delivery["seller_name"]
    seller = get_directory().get(delivery.get("seller_id") or "")
    return seller.name if seller else "Unknown expert"


@router.get("/my-alerts", response_class=HTMLResponse)
def my_alerts(request: Request):
    user, _ = get_current_user(request)
    if not user:
        return login_redirect()

    deliveries = get_alert_deliveries_for_expert(expert_id=user.id, limit=200)

    rows = ""
    for d in deliveries:
        seller_id = d.get("seller_id") or ""
        status = d.get("status") or ""
        rows += f"""
        <tr>
          <td>{esc(d.get('book_title'))}</td>
          <td>{esc(d.get('book_author'))}</td>
          <td><a href="/experts/{esc(seller_id)}">{esc(_seller_name(d))}</a></td>
          <td>{esc(status)}</td>
          <td>{esc(d.get('sent_at') or d.get('created_at') or '')}</td>
        </tr>
        """

    if not rows:
        rows = (
            '<tr><td colspan="5">No alerts yet. When an expert lists the book you are searching for, '
            "it will show up here.</td></tr>"
        )

    note = ""
    if not user.book_query:
        note = '<p class="muted">You are not searching for a book yet. Add one on your <a href="/dashboard">dashboard</a>.</p>'
    elif not user.is_premium:
        note = '<p class="muted">Title Hive alerts are a premium feature. <a href="/premium">Go Premium</a> to receive them.</p>'

    body = f"""
    <div class="card">
      <p class="muted">Your Title Hive alert history (latest first).</p>
      {note}
      <table>
        <thead>
          <tr>
            <th>Title</th>
            <th>Author</th>
            <th>Listed by</th>
            <th>Status</th>
            <th>When</th>
          </tr>
        </thead>
        <tbody>
          {rows}
        </tbody>
      </table>
    </div>
    """

    return render_page("My Alerts", body, user=user)
