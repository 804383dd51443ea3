"""
Foyer Bookshop Example

This example demonstrates the core features of Foyer:
- Controllers discovered by package scanning
- Static and dynamic routes, GET/POST handlers
- Query string, form and path variable binding
- ModelView results: template views and redirects

To run this application (from this directory):
    foyer dev --app-file app.py
or
    uvicorn app:app --reload --port 8000
"""

import logging
import os

from foyer import Foyer, Settings

HERE = os.path.dirname(os.path.abspath(__file__))

settings = Settings(
    controllers_packages="controllers",
    views_dir=os.path.join(HERE, "views"),
    log_level="DEBUG",
    environment="development",
)

app = Foyer(settings, configure_logging=True)

logging.getLogger("foyer.bookshop").info("Bookshop ready, try GET /books")
