"""Order exports for the admin screens: CSV listing and printable invoice."""

from html import escape

from marketplace.order.order import Order, present_status
from marketplace.utils import settings

CSV_HEADERS = ["Order ID", "Customer", "Date", "Items", "Status", "Amount"]


def _customer_name(order: Order) -> str:
    if order.shipping_address and order.shipping_address.name:
        return order.shipping_address.name
    return "Unknown Customer"


def _order_date(order: Order) -> str:
    return order.created_at.strftime("%d %b %Y") if order.created_at else ""


def _quoted(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def orders_to_csv(orders: list[Order]) -> str:
    """One row per order; the customer column is always quoted."""
    lines = [",".join(CSV_HEADERS)]
    for order in orders:
        lines.append(
            ",".join(
                [
                    str(order.id),
                    _quoted(_customer_name(order)),
                    _order_date(order),
                    str(order.item_count),
                    present_status(order.status).label,
                    f"{order.total:.2f}",
                ]
            )
        )
    return "\n".join(lines)


def csv_filename(today) -> str:
    return f"orders-export-{today.isoformat()}.csv"


_INVOICE_STYLE = """
    body { font-family: Arial, sans-serif; margin: 20px; }
    .header { display: flex; justify-content: space-between; border-bottom: 1px solid #eee; padding-bottom: 10px; }
    table { width: 100%; border-collapse: collapse; margin-top: 20px; }
    th, td { padding: 8px; text-align: left; border-bottom: 1px solid #ddd; }
    th { background-color: #f5f5f5; }
    .footer { margin-top: 30px; text-align: center; color: #888; font-size: 12px; }
    .total { text-align: right; margin-top: 20px; font-weight: bold; }
    @media print {
      .no-print { display: none; }
      body { margin: 0; padding: 15px; }
    }
"""


def render_invoice(order: Order, currency: str | None = None) -> str:
    """Standalone HTML invoice with a print button."""
    currency = currency or settings.CURRENCY
    order_id = escape(str(order.id))

    rows = "\n".join(
        f"""        <tr>
          <td>{escape(str(item.product_id))}</td>
          <td>{item.quantity}</td>
          <td>{currency} {item.unit_price:.2f}</td>
          <td>{currency} {item.line_total:.2f}</td>
        </tr>"""
        for item in order.items
    )

    return f"""<!DOCTYPE html>
<html>
  <head>
    <title>Order {order_id}</title>
    <style>{_INVOICE_STYLE}</style>
  </head>
  <body>
    <div class="header">
      <div>
        <h1>Order Invoice</h1>
        <p>Date: {escape(_order_date(order))}</p>
        <p>Order ID: {order_id}</p>
        <p>Customer: {escape(_customer_name(order))}</p>
      </div>
    </div>

    <h3>Order Summary</h3>
    <p>Status: {escape(present_status(order.status).label)}</p>

    <table>
      <thead>
        <tr>
          <th>Product</th>
          <th>Quantity</th>
          <th>Price</th>
          <th>Total</th>
        </tr>
      </thead>
      <tbody>
{rows}
      </tbody>
    </table>

    <div class="total">
      <p>Subtotal: {currency} {order.subtotal:.2f}</p>
      <p>Shipping: {currency} {order.shipping_fee:.2f}</p>
      <p>Total Amount: {currency} {order.total:.2f}</p>
    </div>

    <div class="footer">
      <p>Thank you for your business!</p>
    </div>

    <div class="no-print" style="margin-top: 20px; text-align: center;">
      <button onclick="window.print();">Print Invoice</button>
    </div>
  </body>
</html>
"""
