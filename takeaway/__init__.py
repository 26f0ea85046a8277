"""
                Takeaway Ordering Backend

Online-ordering backend for a single restaurant: menu, carts, guest
checkout, delivery-fee quoting and store-hours/slot availability.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
