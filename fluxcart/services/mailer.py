# fluxcart/services/mailer.py
import html
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from sqlalchemy.orm import Session

from fluxcart.data.models.order import OrderModel
from fluxcart.data.models.user import UserModel
from fluxcart.utils import settings
from fluxcart.utils.logging import get_logger

logger = get_logger(__name__)

_SYMBOLS = {"INR": "₹", "USD": "$", "EUR": "€", "GBP": "£"}


def _group_indian(digits: str) -> str:
    # 1,10,000 - ostatnie 3 cyfry, potem grupy po 2
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_money(cents: int, currency: str = "INR") -> str:
    sign = "-" if cents < 0 else ""
    major, minor = divmod(abs(int(cents)), 100)
    if currency.upper() == "INR":
        whole = _group_indian(str(major))
    else:
        whole = f"{major:,}"
    symbol = _SYMBOLS.get(currency.upper(), f"{currency.upper()} ")
    return f"{sign}{symbol}{whole}.{minor:02d}"


def order_url(order_id: int, web_url: str | None = None) -> str:
    return f"{(web_url or settings.WEB_URL).rstrip('/')}/orders/{order_id}"


def _subtotal(order: OrderModel) -> int:
    return sum(it.qty * it.price_cents for it in order.items)


def render_order_email_html(order: OrderModel, user_name: str | None = None, web_url: str | None = None) -> str:
    cur = order.currency
    rows = "".join(
        f"""
      <tr>
        <td style="padding:8px 12px;">{html.escape(it.product.title)}</td>
        <td style="padding:8px 12px;text-align:center;">{it.qty}</td>
        <td style="padding:8px 12px;text-align:right;">{format_money(it.price_cents, cur)}</td>
      </tr>"""
        for it in order.items
    )
    greeting = f"Thanks, {html.escape(user_name)}" if user_name else "Thanks"
    discount_row = (
        f'<tr><td colspan="2" align="right" style="padding:8px 12px;">Discount</td>'
        f'<td align="right" style="padding:8px 12px;">-{format_money(order.discount_cents, cur)}</td></tr>'
        if order.discount_cents
        else ""
    )
    url = order_url(order.id, web_url)

    return f"""
  <div style="font-family:system-ui,sans-serif;max-width:640px;margin:auto;color:#111;">
    <h2 style="margin:16px 0;">{greeting}, your order is confirmed!</h2>
    <p style="margin:0 0 12px;">Order ID: <b>{order.id}</b></p>
    <table width="100%" cellspacing="0" cellpadding="0" style="border-collapse:collapse;border:1px solid #eee;">
      <thead>
        <tr style="background:#fafafa">
          <th align="left" style="padding:10px 12px;">Item</th>
          <th align="center" style="padding:10px 12px;">Qty</th>
          <th align="right" style="padding:10px 12px;">Price</th>
        </tr>
      </thead>
      <tbody>{rows}</tbody>
      <tfoot>
        <tr><td colspan="2" align="right" style="padding:8px 12px;">Subtotal</td><td align="right" style="padding:8px 12px;">{format_money(_subtotal(order), cur)}</td></tr>
        {discount_row}
        <tr><td colspan="2" align="right" style="padding:8px 12px;"><b>Total</b></td><td align="right" style="padding:8px 12px;"><b>{format_money(order.total_cents, cur)}</b></td></tr>
      </tfoot>
    </table>
    <p style="text-align:center;margin:24px 0 8px;"><a href="{url}">View Order</a></p>
    <p style="font-size:12px;color:#777;margin:0;">This is a transactional email about your purchase on FluxCart.</p>
  </div>
"""


def render_order_email_text(order: OrderModel, web_url: str | None = None) -> str:
    cur = order.currency
    lines = [
        f"- {it.product.title}  x{it.qty}  {format_money(it.price_cents, cur)}"
        for it in order.items
    ]
    out = [
        "Your order is confirmed!",
        f"Order ID: {order.id}",
        "",
        "Items:",
        *lines,
        "",
        f"Subtotal: {format_money(_subtotal(order), cur)}",
    ]
    if order.discount_cents:
        out.append(f"Discount: -{format_money(order.discount_cents, cur)}")
    out += [
        f"Total: {format_money(order.total_cents, cur)}",
        "",
        f"View your order: {order_url(order.id, web_url)}",
    ]
    return "\n".join(out)


def is_configured() -> bool:
    return bool(settings.EMAIL_SERVER and settings.EMAIL_USER and settings.EMAIL_PASSWORD)


def send_email(to: str, subject: str, html_body: str, text_body: str):
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = settings.EMAIL_FROM
    msg["To"] = to
    recipients = [to]
    if settings.EMAIL_BCC:
        recipients.append(settings.EMAIL_BCC)
    msg.attach(MIMEText(text_body, "plain", "utf-8"))
    msg.attach(MIMEText(html_body, "html", "utf-8"))

    if settings.EMAIL_PORT == 465:
        smtp = smtplib.SMTP_SSL(settings.EMAIL_SERVER, settings.EMAIL_PORT, timeout=10)
    else:
        smtp = smtplib.SMTP(settings.EMAIL_SERVER, settings.EMAIL_PORT, timeout=10)
    with smtp as s:
        if settings.EMAIL_PORT != 465:
            s.starttls()
        s.login(settings.EMAIL_USER, settings.EMAIL_PASSWORD)
        s.sendmail(settings.EMAIL_FROM, recipients, msg.as_string())


def send_order_receipt(db: Session, order_id: int) -> bool:
    order = db.get(OrderModel, order_id)
    if not order:
        logger.warning(f"Order {order_id} not found, receipt skipped")
        return False
    user = db.get(UserModel, order.user_id)
    if not user or not user.email:
        logger.info(f"User of order {order_id} has no email, receipt skipped")
        return False

    send_email(
        to=user.email,
        subject=f"Your FluxCart order {order.id} is confirmed",
        html_body=render_order_email_html(order, user.name),
        text_body=render_order_email_text(order),
    )
    logger.info(f"Receipt for order {order.id} sent to user {user.id}")
    return True
