"""
Render a TradingSnapshot into the Telegram HTML message
"""

from datetime import datetime
from html import escape

from .models import TradingSnapshot

SEPARATOR = "━" * 20

MESSAGE_TEMPLATE = """📈 <b>Ежедневный отчет по ценной бумаге</b>

{separator}
📅 <b>Дата последней сделки:</b> {date}
💰 <b>Текущая цена:</b> {price} BYN
📊 <b>Изменение цены:</b> +{change} BYN
📈 <b>Процент изменения:</b> +{change_percent}

🧾 <b>Итоги торгов (вторич.):</b>
• мин.: {min}
• макс.: {max}
• срвз: {avg}
{separator}

🔗 <a href="{source_url}">Источник: БВФБ</a>

⏰ Сформировано: {timestamp}"""


def format_timestamp(moment: datetime) -> str:
    """Format a datetime the way the ru-RU locale prints it: 19.10.2026, 09:05:00."""
    return moment.strftime("%d.%m.%Y, %H:%M:%S")


def format_message(snapshot: TradingSnapshot, now: datetime, source_url: str) -> str:
    return MESSAGE_TEMPLATE.format(
        separator=SEPARATOR,
        date=escape(snapshot.date),
        price=escape(snapshot.price),
        change=escape(snapshot.change),
        change_percent=escape(snapshot.change_percent),
        min=escape(snapshot.secondary.min),
        max=escape(snapshot.secondary.max),
        avg=escape(snapshot.secondary.avg),
        source_url=escape(source_url, quote=True),
        timestamp=format_timestamp(now),
    )
