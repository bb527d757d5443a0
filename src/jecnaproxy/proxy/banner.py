"""Disclaimer overlay injected into mirrored HTML pages."""

from __future__ import annotations

import re

from jecnaproxy.upstream import UpstreamTarget

BANNER_ID = "jecnaproxy-warning"
REDIRECT_SECONDS = 10

# Opening <body> tag. Quotes only open a value right after "=", and a quoted
# value that runs into "<" is read as unquoted, ending at the first ">".
_BODY_TAG = re.compile(
    r"""<body(?:\s(?:[^>"'=]|=\s*(?:"[^"<]*"|'[^'<]*'|[^\s>]*)|["'])*+)?>""",
    re.IGNORECASE,
)

_BANNER_TEMPLATE = """\
<div id="{banner_id}" style="position:fixed;inset:0;z-index:2147483647;\
display:flex;align-items:center;justify-content:center;\
background:rgba(0,0,0,0.85);color:#fff;font-family:sans-serif;text-align:center;">\
<div style="max-width:32em;padding:2em;background:#222;border-radius:8px;">\
<h2 style="margin-top:0;">Neoficiální zrcadlo</h2>\
<p>Tato stránka není oficiálním webem. Jedná se o neoficiální zrcadlo stránek \
<a href="{upstream_url}" style="color:#6cf;">{upstream_url}</a>.</p>\
<p>Za <span id="{banner_id}-countdown">{seconds}</span> s budete přesměrováni na oficiální web.</p>\
<button type="button" id="{banner_id}-stay" style="padding:0.5em 1em;">Pokračovat na zrcadlo</button>\
</div></div>\
<script>(function(){{\
var left={seconds};\
var el=document.getElementById("{banner_id}-countdown");\
var timer=setInterval(function(){{\
left-=1;if(el){{el.textContent=left;}}\
if(left<=0){{clearInterval(timer);\
window.location.href="{upstream_url}"+window.location.pathname+window.location.search;}}\
}},1000);\
document.getElementById("{banner_id}-stay").addEventListener("click",function(){{\
clearInterval(timer);\
var overlay=document.getElementById("{banner_id}");\
if(overlay){{overlay.parentNode.removeChild(overlay);}}\
}});\
}})();</script>"""


def render_banner(upstream: UpstreamTarget, seconds: int = REDIRECT_SECONDS) -> str:
    """Render the overlay pointing visitors at the real site."""
    return _BANNER_TEMPLATE.format(
        banner_id=BANNER_ID,
        upstream_url=upstream.url,
        seconds=seconds,
    )


def inject_banner(html: str, banner: str) -> str:
    """Insert ``banner`` right after the first ``<body>`` tag.

    Documents without a body tag get the banner prepended.
    """
    match = _BODY_TAG.search(html)
    if match is None:
        return banner + html
    end = match.end()
    return html[:end] + banner + html[end:]
