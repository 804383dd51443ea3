"""Non-controller classes living next to controllers."""

from .catalog import CatalogController  # noqa: F401 - imported, not defined here


class PriceFormatter:
    def format(self, amount):
        return f"{amount:.2f}"
