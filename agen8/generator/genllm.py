# agen8/generator/genllm.py

from __future__ import annotations
import json
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from openai import OpenAI

from agen8.errors import GenerationError
from agen8.model.workflow import Workflow
from agen8.structural.repair import auto_repair, normalize_connections
from agen8.utils.logger import get_logger

log = get_logger("generator")

DEFAULT_MODEL = "gpt-4o-mini"


def default_model() -> str:
    return os.environ.get("AGEN8_MODEL") or DEFAULT_MODEL


def _get_client() -> Optional[OpenAI]:
    """Return an OpenAI client configured from the environment, or None without an API key."""
    api_key = os.environ.get("OPENAI_API_KEY")
    if not api_key:
        return None
    kwargs: Dict[str, Any] = {"api_key": api_key}
    org = os.environ.get("OPENAI_ORG")
    if org:
        kwargs["organization"] = org
    base_url = os.environ.get("OPENAI_BASE_URL")
    if base_url:
        kwargs["base_url"] = base_url
    return OpenAI(**kwargs)


def load_prompts_file(path: Path) -> List[Tuple[str, str]]:
    # simple parser for batch files:
    # CASE_01\n<text...>\n\nCASE_02\n<text...>...
    text = path.read_text(encoding="utf-8").strip()
    blocks = [b.strip() for b in text.split("\n\n") if b.strip()]
    pairs: List[Tuple[str, str]] = []
    for blk in blocks:
        lines = [l.strip() for l in blk.splitlines() if l.strip()]
        if not lines:
            continue
        case_id = lines[0]
        prompt = " ".join(lines[1:]) if len(lines) > 1 else ""
        pairs.append((case_id, prompt))
    return pairs


SYSTEM_PROMPT = """
You are an expert n8n workflow architect. You turn a natural-language
description of an automation into ONE n8n workflow as pure JSON.

Output rules:
- Output ONLY raw JSON. No Markdown, no code fences, no explanations.
- Top-level keys: "name", "nodes", "connections", "active", "settings".
- "active" is false; "settings" is {"executionOrder": "v1"}.

Nodes:
- Every node has "id", "name", "type", "position" ([x, y]) and "parameters".
- Node ids and node names are unique within the workflow.
- The first node is a trigger, e.g. "n8n-nodes-base.start",
  "n8n-nodes-base.manualTrigger", "n8n-nodes-base.webhook" or "n8n-nodes-base.cron".
- Lay nodes out left to right: position x grows by 350 per step, y stays 300.
- Parameters are realistic for each type:
  * "n8n-nodes-base.httpRequest": "url" (absolute http/https URL), "method"
  * "n8n-nodes-base.emailSend": "to", "subject", "text"
  * "n8n-nodes-base.slack": "channel", "text"
  * "n8n-nodes-base.function": "functionCode"
  * "n8n-nodes-base.webhook": "path", "httpMethod"

Connections:
- Keys are node NAMES (never ids). Format:
  "connections": {
    "Start": {"main": [[{"node": "Fetch Data", "type": "main", "index": 0}]]}
  }
- EVERY node is connected. Every node except the last has an outgoing
  connection; every node except the first has an incoming connection.
- No isolated nodes, no cycles.

EMAIL NODE EXAMPLE:
{
  "id": "email-node",
  "name": "Send Email",
  "type": "n8n-nodes-base.emailSend",
  "position": [800, 300],
  "parameters": {
    "to": "recipient@example.com",
    "subject": "Notification from n8n",
    "text": "This is an automated message from your n8n workflow."
  }
}
""".strip()


def build_messages(prompt: str, existing: Optional[Workflow] = None) -> List[Dict[str, str]]:
    """
    Chat messages for a fresh generation, or for an incremental edit when
    `existing` is given (the current workflow is sent along and the model is
    asked to return the complete updated workflow).
    """
    if existing is None:
        user_msg = f"Create an n8n workflow for: {prompt}"
    else:
        user_msg = (
            "Here is the current n8n workflow:\n\n"
            f"{json.dumps(existing.to_dict(), ensure_ascii=False, indent=2)}\n\n"
            f"Modify it according to this instruction: {prompt}\n\n"
            "Keep existing node names and ids unless the instruction asks otherwise. "
            "Return the COMPLETE updated workflow as raw JSON."
        )
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": user_msg},
    ]


_JSON_BLOCK_RE = re.compile(r"\{.*\}", re.DOTALL)


def extract_json(content: str) -> Dict[str, Any]:
    """
    Parse the model reply. Falls back to the outermost {...} block when the
    reply wraps the JSON in prose or code fences.
    """
    text = (content or "").strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        match = _JSON_BLOCK_RE.search(text)
        if not match:
            raise GenerationError("Invalid JSON generated by AI")
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise GenerationError(f"Invalid JSON generated by AI: {e.msg}") from e

    if not isinstance(data, dict):
        raise GenerationError("AI did not return a JSON object")
    return data


def workflow_from_llm_output(data: Dict[str, Any], existing: Optional[Workflow] = None) -> Workflow:
    """
    Post-process a decoded reply: fix the connection nesting, build the model,
    auto-connect an under-connected node list and fill workflow defaults.
    """
    if not isinstance(data.get("nodes"), list):
        raise GenerationError("Invalid workflow: missing or invalid nodes")

    raw = dict(data)
    raw["connections"] = normalize_connections(raw.get("connections"))
    if existing is not None:
        # incremental edits keep the identity of the workflow being edited
        raw.setdefault("name", existing.name)
        if existing.id is not None:
            raw["id"] = existing.id
    wf = Workflow.from_dict(raw)
    return auto_repair(wf)


def generate_workflow(
    prompt: str,
    model: Optional[str] = None,
    existing: Optional[Workflow] = None,
    client: Optional[Any] = None,
    temperature: float = 0.2,
    max_tokens: int = 2000,
) -> Workflow:
    """
    Generate a workflow from a natural-language prompt (or update `existing`).

    `client` is any object with an OpenAI-style `chat.completions.create`;
    by default one is built from OPENAI_API_KEY / OPENAI_ORG / OPENAI_BASE_URL.
    The result is repaired but not validated; run `validate` on it.
    """
    if not prompt or not prompt.strip():
        raise GenerationError("Please enter a workflow description")

    client = client if client is not None else _get_client()
    if client is None:
        raise GenerationError("OpenAI API key is required. Set OPENAI_API_KEY.")

    model = model or default_model()
    log.info(f"generating workflow with {model} ({'incremental' if existing else 'fresh'})")
    resp = client.chat.completions.create(
        model=model,
        messages=build_messages(prompt, existing),
        temperature=temperature,
        max_tokens=max_tokens,
    )

    try:
        content = resp.choices[0].message.content
    except (AttributeError, IndexError, TypeError) as e:
        raise GenerationError(f"LLM response malformed: {e!r}") from e
    if not content:
        raise GenerationError("No workflow generated")

    wf = workflow_from_llm_output(extract_json(content), existing=existing)
    log.info(f"generated '{wf.name}' with {len(wf.nodes)} node(s)")
    return wf
