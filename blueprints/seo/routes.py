from __future__ import annotations
from datetime import datetime, timezone
from xml.sax.saxutils import escape

from flask import Response, current_app

from extensions import db
from models import Curriculum

from . import bp

STATIC_PAGES = (
    ("", "1.0", "daily"),
    ("/browse", "0.9", "daily"),
    ("/search", "0.8", "weekly"),
    ("/login", "0.3", "monthly"),
    ("/register", "0.3", "monthly"),
)


def _base_url() -> str:
    return current_app.config.get("FRONTEND_URL", "https://shelftaught.com").rstrip("/")


def _url(loc: str, lastmod: str, changefreq: str, priority: str) -> str:
    return (
        "  <url>\n"
        f"    <loc>{escape(loc)}</loc>\n"
        f"    <lastmod>{lastmod}</lastmod>\n"
        f"    <changefreq>{changefreq}</changefreq>\n"
        f"    <priority>{priority}</priority>\n"
        "  </url>"
    )


@bp.get("/sitemap.xml")
def sitemap():
    base = _base_url()
    today = datetime.now(timezone.utc).date().isoformat()
    rows = (
        db.session.query(Curriculum.slug, Curriculum.updated_at)
        .order_by(Curriculum.updated_at.desc(), Curriculum.id.asc())
        .all()
    )
    entries = [_url(f"{base}{path}", today, freq, prio) for path, prio, freq in STATIC_PAGES]
    entries += [
        _url(f"{base}/curriculum/{slug}", updated.date().isoformat() if updated else today, "weekly", "0.7")
        for slug, updated in rows
    ]
    body = (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">\n'
        + "\n".join(entries)
        + "\n</urlset>"
    )
    current_app.logger.info("sitemap generated", extra={"event": "sitemap"})
    resp = Response(body, mimetype="application/xml")
    resp.headers["Cache-Control"] = "public, max-age=3600"
    return resp


@bp.get("/robots.txt")
def robots():
    body = (
        "User-agent: *\n"
        "Allow: /\n"
        "\n"
        "# Sitemap\n"
        f"Sitemap: {_base_url()}/sitemap.xml\n"
        "\n"
        "# Crawl-delay for polite crawling\n"
        "Crawl-delay: 1"
    )
    resp = Response(body, mimetype="text/plain")
    resp.headers["Cache-Control"] = "public, max-age=86400"
    return resp
