"""HTML pages for the admin surface.

Pages are small enough to build from strings; every user-controlled value
passes through ``html.escape``.
"""

from __future__ import annotations

import html
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hookbin.hooks import Hook

DELIVERY_PREFIX = "/h/"


def _page(title: str, body: str) -> str:
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        '<meta charset="utf-8">\n'
        f"<title>{html.escape(title)} - hookbin</title>\n"
        "</head>\n"
        "<body>\n"
        f"<h1>{html.escape(title)}</h1>\n"
        f"{body}"
        "</body>\n"
        "</html>\n"
    )


def delivery_url(hook: Hook) -> str:
    return f"{DELIVERY_PREFIX}{hook.name}"


def render_index(hooks: Sequence[Hook]) -> str:
    if hooks:
        items = "".join(
            f'<li><a href="/hooks/{html.escape(h.name, quote=True)}">{html.escape(h.name)}</a></li>\n'
            for h in hooks
        )
        listing = f"<ul>\n{items}</ul>\n"
    else:
        listing = "<p>No hooks registered yet.</p>\n"
    return _page("Hooks", f'{listing}<p><a href="/hooks/new">New hook</a></p>\n')


def render_new_hook() -> str:
    form = (
        '<form method="post" action="/hooks">\n'
        '<label for="name">Name</label>\n'
        '<input id="name" name="name" pattern="[a-z0-9-]+" required>\n'
        '<button type="submit">Create</button>\n'
        "</form>\n"
        "<p>Lowercase letters, digits and dashes only.</p>\n"
        '<p><a href="/">Back</a></p>\n'
    )
    return _page("New hook", form)


def render_hook(hook: Hook) -> str:
    name = html.escape(hook.name, quote=True)
    body = (
        f"<p>Deliveries: <code>{html.escape(delivery_url(hook))}</code></p>\n"
        f'<form method="post" action="/hooks/{name}/delete">\n'
        '<button type="submit">Delete</button>\n'
        "</form>\n"
        '<p><a href="/">Back</a></p>\n'
    )
    return _page(hook.name, body)
