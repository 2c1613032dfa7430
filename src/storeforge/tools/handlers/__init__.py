"""Handler Set: one function per registered tool, grouped by entity.

Handlers take validated arguments and a ``HandlerContext`` and return a
``ToolResult``. They raise ``StoreForgeError`` subclasses for expected
failures; the dispatcher turns those into failed results. No handler calls
another handler.
"""

from storeforge.tools.handlers import analytics, collections, coupons, orders, products, reviews, settings, ui

ALL_TOOLS = [
    *products.TOOLS,
    *orders.TOOLS,
    *coupons.TOOLS,
    *collections.TOOLS,
    *reviews.TOOLS,
    *settings.TOOLS,
    *analytics.TOOLS,
    *ui.TOOLS,
]

__all__ = ["ALL_TOOLS"]
