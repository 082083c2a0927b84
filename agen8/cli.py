#!/usr/bin/env python3
# agen8/cli.py

from pathlib import Path
from typing import Optional

import typer

from agen8.errors import Agen8Error
from agen8.editor.layout import auto_arrange
from agen8.editor.operations import rename_node
from agen8.generator.genllm import generate_workflow, load_prompts_file
from agen8.model.result import ValidationResult
from agen8.structural.metrics import compute_structural_metrics
from agen8.structural.repair import auto_repair
from agen8.structural.validator import validate as validate_workflow
from agen8.utils.graph import edge_count
from agen8.utils.io import load_workflow, save_workflow, write_json
from agen8.utils.logger import init_logger, parse_level

app = typer.Typer(help="AGEN8 CLI - validate, repair and edit n8n workflows")


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG | INFO | WARNING | ERROR (default: $LOG_LEVEL or INFO)"),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir", help="Also write a rotating log file into this directory"),
):
    level = parse_level(log_level) if log_level else None
    init_logger(level=level, log_dir=log_dir)


def _fail(err: Agen8Error) -> None:
    typer.echo(f"error: {err}", err=True)
    raise typer.Exit(2)


def _print_result(result: ValidationResult) -> None:
    print("Valid:   " + ("yes" if result.is_valid else "no"))
    print(f"Errors:  {len(result.errors)}")
    print(f"Warnings:{len(result.warnings)}")
    for e in result.errors:
        print(f"- [ERROR] {e.message}")
    for w in result.warnings:
        print(f"- [WARN]  {w.message}")


@app.command()
def validate(
    input: Path = typer.Option(..., "--input", "-i", exists=True, readable=True, help="Path to n8n workflow JSON"),
    apply_repair: bool = typer.Option(False, "--repair", help="Auto-connect an under-connected workflow before validating"),
    report: Optional[Path] = typer.Option(None, "--report", help="Write a JSON report to this path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show graph metrics"),
):
    """
    Validate a workflow. Exit status 1 when it has errors (not deployable).
    """
    try:
        wf = load_workflow(input)
    except Agen8Error as e:
        _fail(e)
    if apply_repair:
        wf = auto_repair(wf)

    result = validate_workflow(wf)
    metrics = compute_structural_metrics(wf)
    _print_result(result)

    if verbose:
        print("[debug] metrics:", metrics)
        if result.disconnected_node_ids:
            print("[debug] disconnected node ids:", result.disconnected_node_ids)

    if report is not None:
        write_json(report, {
            "input": str(input),
            "repaired": apply_repair,
            "result": result.to_dict(),
            "metrics": metrics,
        })
        print(f"[ok] wrote report to {report}")

    if not result.is_valid:
        raise typer.Exit(1)


@app.command()
def repair(
    input: Path = typer.Option(..., "--input", "-i", exists=True, readable=True, help="Path to n8n workflow JSON"),
    out: Path = typer.Option(..., "--out", "-o", help="Where to write the repaired workflow"),
    force: bool = typer.Option(False, "--force", help="Chain every neighbour pair even if the workflow looks connected"),
):
    """Normalize connection shapes and auto-connect the node list in order."""
    try:
        wf = load_workflow(input)
    except Agen8Error as e:
        _fail(e)
    before = edge_count(wf.connections)
    fixed = auto_repair(wf, force=force)
    save_workflow(out, fixed)
    print(f"[ok] added {edge_count(fixed.connections) - before} edge(s); wrote {out}")


@app.command()
def rename(
    input: Path = typer.Option(..., "--input", "-i", exists=True, readable=True, help="Path to n8n workflow JSON"),
    node_id: str = typer.Option(..., "--node-id", help="Id of the node to rename"),
    name: str = typer.Option(..., "--name", help="New node name"),
    out: Path = typer.Option(..., "--out", "-o", help="Where to write the updated workflow"),
):
    """Rename a node and rewrite every connection that references it."""
    try:
        wf = rename_node(load_workflow(input), node_id, name)
    except Agen8Error as e:
        _fail(e)
    save_workflow(out, wf)
    print(f"[ok] wrote {out}")


@app.command()
def arrange(
    input: Path = typer.Option(..., "--input", "-i", exists=True, readable=True, help="Path to n8n workflow JSON"),
    out: Path = typer.Option(..., "--out", "-o", help="Where to write the re-positioned workflow"),
    mode: str = typer.Option("grid", "--mode", help="grid | layered"),
):
    """Recompute node positions on the canvas."""
    if mode not in ("grid", "layered"):
        raise typer.BadParameter(f"Invalid mode '{mode}'. Choose one of: grid, layered")
    try:
        wf = load_workflow(input)
    except Agen8Error as e:
        _fail(e)
    save_workflow(out, auto_arrange(wf, mode=mode))
    print(f"[ok] wrote {out}")


@app.command()
def export(
    input: Path = typer.Option(..., "--input", "-i", exists=True, readable=True, help="Path to n8n workflow JSON"),
    out: Path = typer.Option(..., "--out", "-o", help="Export path"),
):
    """Write a clean n8n import file (defaults filled in, connection shapes normalized)."""
    try:
        wf = load_workflow(input)
    except Agen8Error as e:
        _fail(e)
    save_workflow(out, wf)
    print(f"[ok] exported '{wf.name}' to {out}")


@app.command()
def generate(
    prompt: str = typer.Option(..., "--prompt", "-p", help="Natural-language description of the automation"),
    out: Path = typer.Option(..., "--out", "-o", help="Where to write the generated workflow"),
    model: Optional[str] = typer.Option(None, "--model", help="LLM model (default: $AGEN8_MODEL or gpt-4o-mini)"),
    base: Optional[Path] = typer.Option(None, "--base", exists=True, readable=True, help="Existing workflow to modify"),
):
    """Generate (or incrementally update) a workflow with an LLM, then validate it."""
    try:
        existing = load_workflow(base) if base is not None else None
        wf = generate_workflow(prompt, model=model, existing=existing)
    except Agen8Error as e:
        _fail(e)
    save_workflow(out, wf)
    print(f"[ok] wrote {out}")
    _print_result(validate_workflow(wf))


@app.command()
def gen_workflows(
    prompts: Path = typer.Option(..., "--prompts", exists=True, readable=True, help="Prompts file: ID line, text lines, blank line"),
    out_root: Path = typer.Option(..., "--out", help="Output root directory"),
    model: Optional[str] = typer.Option(None, "--model", help="LLM model for workflow generation"),
    overwrite: bool = typer.Option(False, "--overwrite", help="Regenerate JSON even if it already exists"),
):
    """
    Generate workflows for every prompt in a file.

    Layout per case:

      <out_root>/<CASE_ID>/
          prompt.txt
          workflow.json
    """
    pairs = load_prompts_file(prompts)
    out_root.mkdir(parents=True, exist_ok=True)

    for case_id, prompt in pairs:
        case_dir = out_root / case_id
        case_dir.mkdir(parents=True, exist_ok=True)

        prompt_file = case_dir / "prompt.txt"
        wf_file = case_dir / "workflow.json"

        if not prompt_file.exists():
            prompt_file.write_text(prompt + "\n", encoding="utf-8")

        if wf_file.exists() and not overwrite:
            print(f"[{case_id}] reuse existing workflow: {wf_file}")
            continue

        try:
            wf = generate_workflow(prompt, model=model)
        except Agen8Error as e:
            print(f"[{case_id}] FAILED: {e}")
            continue
        save_workflow(wf_file, wf)
        print(f"[{case_id}] generated workflow -> {wf_file}")


@app.command()
def bench(
    glob: str = typer.Option("bench/structural/*/workflow.json", "--glob", help="Glob for workflow JSON files"),
    out: Path = typer.Option(Path("experiments/results/validation.csv"), "--out", help="CSV path to write results"),
    apply_repair: bool = typer.Option(False, "--repair", help="Repair each workflow before validating"),
):
    """Batch-validate workflows and export a CSV report."""
    import glob as _glob
    import pandas as pd

    rows = []
    for fp_str in sorted(_glob.glob(glob)):
        fp = Path(fp_str)
        try:
            wf = load_workflow(fp)
        except Agen8Error as e:
            print(f"[skip] {fp}: {e}")
            continue
        if apply_repair:
            wf = auto_repair(wf)

        result = validate_workflow(wf)
        m = compute_structural_metrics(wf)
        rows.append({
            "id": fp.parent.name,
            "file": str(fp),
            "valid": result.is_valid,
            "errors": len(result.errors),
            "warnings": len(result.warnings),
            "missing_trigger": result.missing_trigger,
            "disconnected": len(result.disconnected_node_ids),
            "n_nodes": m["n_nodes"],
            "n_edges": m["n_edges"],
            "connected_ratio": m["connected_ratio"],
            "acyclic": m["acyclic"],
        })

    out.parent.mkdir(parents=True, exist_ok=True)
    pd.DataFrame(rows).to_csv(out, index=False)
    print(f"[ok] wrote {out} ({len(rows)} workflows)")


if __name__ == "__main__":
    app()
