# agen8/structural/catalog.py
"""
Registry of the node types the validator knows about.

Each entry is a small capability descriptor: whether the type can start a run
(trigger) and an optional parameter check hook. Types not in the registry are
accepted as-is; only their connectivity is validated.

Lookup is by exact type tag first, then by the part after the last "." so that
"n8n-nodes-base.httpRequest" and "action.httpRequest" share the same rules.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple
from urllib.parse import urlsplit

from agen8.model.result import ERROR, WARNING, ValidationResult
from agen8.model.workflow import Node

NodeCheck = Callable[[Node, ValidationResult], None]


@dataclass(frozen=True)
class NodeTypeSpec:
    type: str
    label: str
    is_trigger: bool = False
    required_parameters: Tuple[str, ...] = ()
    check: Optional[NodeCheck] = None

    @property
    def short_name(self) -> str:
        return short_type(self.type)


def short_type(node_type: str) -> str:
    return node_type.rsplit(".", 1)[-1]


# ---------- parameter helpers ----------
def _is_blank(params: Dict[str, Any], key: str) -> bool:
    v = params.get(key)
    if v is None or v is False:
        return True
    if isinstance(v, str):
        return v.strip() == ""
    # 0 and NaN are falsy in workflow expressions too
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return v == 0 or v != v
    return False


_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*$")
# Schemes that must carry a host; any other scheme may be opaque ("mailto:x", "foo:")
_HOST_SCHEMES = ("http", "https", "ftp", "ws", "wss")


def looks_like_url(value: Any) -> bool:
    """
    Absolute URL the way a browser parses one.

    A scheme is required. Web schemes also need a host, which may follow the
    scheme without slashes ("http:example.com"). Spaces inside the path are
    accepted, spaces inside the host are not.
    """
    text = str(value).strip()
    if not text:
        return False
    try:
        parts = urlsplit(text)
        # .port raises on a malformed port such as "http://host:abc"
        parts.port
    except ValueError:
        return False
    if not parts.scheme or not _SCHEME_RE.match(parts.scheme):
        return False
    if parts.scheme.lower() not in _HOST_SCHEMES:
        return True
    if parts.netloc:
        host = parts.hostname or ""
    else:
        host = parts.path.lstrip("/").split("/", 1)[0]
    return bool(host) and not any(ch.isspace() for ch in host)


_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# LLM output is full of placeholder recipients; these are left alone.
_EMAIL_PLACEHOLDER_MARKERS = ("{{", "${", "recipient@", "user@", "example.com", ".email")


def is_email_placeholder(value: str) -> bool:
    return value == "email" or any(m in value for m in _EMAIL_PLACEHOLDER_MARKERS)


def looks_like_email(value: str) -> bool:
    return bool(_EMAIL_RE.match(value))


# ---------- check hooks ----------
def _require(severity: str, what: str) -> NodeCheck:
    """
    Build a hook that reports one issue when any of the node type's
    required parameters is blank. `what` completes the message, e.g. "JavaScript code".
    """
    def check(node: Node, result: ValidationResult) -> None:
        spec = lookup(node.type)
        keys = spec.required_parameters if spec else ()
        if any(_is_blank(node.parameters, k) for k in keys):
            label = spec.label if spec else node.type
            message = f'{label} node "{node.name}" is missing {what}'
            if severity == ERROR:
                result.add_error(message, node.id, node.name)
            else:
                result.add_warning(message, node.id, node.name)
    return check


def _check_http_request(node: Node, result: ValidationResult) -> None:
    if _is_blank(node.parameters, "url"):
        result.add_error(f'HTTP Request node "{node.name}" is missing URL parameter', node.id, node.name)
    elif not looks_like_url(node.parameters["url"]):
        result.add_error(f'HTTP Request node "{node.name}" has invalid URL format', node.id, node.name)


def _check_email_send(node: Node, result: ValidationResult) -> None:
    params = node.parameters
    if _is_blank(params, "to") or _is_blank(params, "subject"):
        result.add_warning(
            f'Email node "{node.name}" is missing required parameters (to, subject)',
            node.id, node.name,
        )
    if not _is_blank(params, "to"):
        to = str(params["to"])
        if not is_email_placeholder(to) and not looks_like_email(to):
            result.add_warning(
                f'Email node "{node.name}" may have invalid email format. '
                "Use expressions or valid email addresses.",
                node.id, node.name,
            )


# ---------- registry ----------
_BASE = "n8n-nodes-base"

_DEFAULT_SPECS = (
    # triggers
    NodeTypeSpec(f"{_BASE}.start", "Start", is_trigger=True),
    NodeTypeSpec(f"{_BASE}.manualTrigger", "Manual Trigger", is_trigger=True),
    NodeTypeSpec(f"{_BASE}.webhook", "Webhook", is_trigger=True,
                 required_parameters=("path",), check=_require(ERROR, "path parameter")),
    NodeTypeSpec(f"{_BASE}.cron", "Cron", is_trigger=True),
    NodeTypeSpec(f"{_BASE}.scheduleTrigger", "Schedule Trigger", is_trigger=True),
    # an HTTP request can originate a run in workflows generated here
    NodeTypeSpec(f"{_BASE}.httpRequest", "HTTP Request", is_trigger=True,
                 required_parameters=("url",), check=_check_http_request),
    NodeTypeSpec(f"{_BASE}.emailTrigger", "Email Trigger", is_trigger=True),
    NodeTypeSpec(f"{_BASE}.emailReadImap", "Email Trigger (IMAP)", is_trigger=True),
    NodeTypeSpec(f"{_BASE}.slackTrigger", "Slack Trigger", is_trigger=True),
    NodeTypeSpec("@n8n/n8n-nodes-langchain.chatTrigger", "Chat Trigger", is_trigger=True),
    # actions
    NodeTypeSpec(f"{_BASE}.emailSend", "Email", required_parameters=("to", "subject"),
                 check=_check_email_send),
    NodeTypeSpec(f"{_BASE}.slack", "Slack", required_parameters=("channel", "text"),
                 check=_require(ERROR, "required parameters (channel, text)")),
    NodeTypeSpec(f"{_BASE}.function", "Function", required_parameters=("functionCode",),
                 check=_require(ERROR, "JavaScript code")),
    NodeTypeSpec(f"{_BASE}.set", "Set"),
    NodeTypeSpec(f"{_BASE}.if", "IF"),
    NodeTypeSpec(f"{_BASE}.switch", "Switch"),
    NodeTypeSpec(f"{_BASE}.merge", "Merge"),
    NodeTypeSpec(f"{_BASE}.noOp", "No Operation"),
)

_BY_TYPE: Dict[str, NodeTypeSpec] = {}
_BY_SHORT: Dict[str, NodeTypeSpec] = {}


def register(spec: NodeTypeSpec) -> NodeTypeSpec:
    """Add or replace a node type; returns it unchanged."""
    _BY_TYPE[spec.type] = spec
    _BY_SHORT[spec.short_name] = spec
    return spec


def unregister(node_type: str) -> None:
    spec = _BY_TYPE.pop(node_type, None)
    if spec is not None and _BY_SHORT.get(spec.short_name) is spec:
        del _BY_SHORT[spec.short_name]


def lookup(node_type: str) -> Optional[NodeTypeSpec]:
    if not node_type:
        return None
    spec = _BY_TYPE.get(node_type)
    if spec is None:
        spec = _BY_SHORT.get(short_type(node_type))
    return spec


def is_trigger_type(node_type: str) -> bool:
    spec = lookup(node_type)
    return bool(spec and spec.is_trigger)


def trigger_types() -> Tuple[str, ...]:
    return tuple(t for t, s in _BY_TYPE.items() if s.is_trigger)


for _spec in _DEFAULT_SPECS:
    register(_spec)
