"""Export helpers for Markdown, LaTeX and PDF renditions of a solution."""

from __future__ import annotations

from pathlib import Path
from typing import List

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import cm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen.canvas import Canvas

from solvemath.models import Solution

EXPORT_TITLE = "Solution détaillée"

_LATEX_SPECIALS = {
    "\\": r"\textbackslash{}",
    "&": r"\&",
    "%": r"\%",
    "$": r"\$",
    "#": r"\#",
    "_": r"\_",
    "{": r"\{",
    "}": r"\}",
    "~": r"\textasciitilde{}",
    "^": r"\textasciicircum{}",
}


def _escape_latex(text: str) -> str:
    return "".join(_LATEX_SPECIALS.get(ch, ch) for ch in text)


def _write(output_path: str, content: str) -> str:
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(content, encoding="utf-8")
    return str(output)


def render_markdown(problem: str, solution: Solution) -> str:
    lines = ["# {}".format(EXPORT_TITLE), "", "**Problème :** {}".format(problem or "-"), ""]
    for index, step in enumerate(solution.steps, start=1):
        lines.append("## Étape {} : {}".format(index, step.title))
        lines.append("")
        lines.append(step.content)
        if step.formula:
            lines.extend(["", "```", step.formula, "```"])
        lines.append("")
    lines.append("**Réponse finale :** {}".format(solution.final_answer))
    return "\n".join(lines) + "\n"


def export_markdown(problem: str, solution: Solution, output_path: str) -> str:
    return _write(output_path, render_markdown(problem, solution))


def export_latex(problem: str, solution: Solution, output_path: str) -> str:
    content = [
        r"\section*{" + EXPORT_TITLE + "}",
        r"\textbf{Problème :} " + _escape_latex(problem or "-") + r"\\",
    ]
    for index, step in enumerate(solution.steps, start=1):
        content.append(r"\subsection*{Étape " + str(index) + " : " + _escape_latex(step.title) + "}")
        content.append(_escape_latex(step.content))
        if step.formula:
            content.append(r"\begin{verbatim}" + "\n" + step.formula + "\n" + r"\end{verbatim}")
    content.append(r"\textbf{Réponse finale :} " + _escape_latex(solution.final_answer))
    return _write(output_path, "\n".join(content) + "\n")


def export_pdf(problem: str, solution: Solution, output_path: str) -> str:
    """Writes a paginated PDF with the problem, each step and the final answer."""
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    page_w, page_h = A4
    margin = 2 * cm
    width = page_w - 2 * margin
    canvas = Canvas(str(output), pagesize=A4)
    y = page_h - margin

    def draw(text: str, font: str, size: int, gap: float = 4) -> None:
        nonlocal y
        lines: List[str] = []
        for paragraph in text.splitlines() or [""]:
            lines.extend(simpleSplit(paragraph, font, size, width) or [""])
        for line in lines:
            if y < margin + size:
                canvas.showPage()
                y = page_h - margin
            canvas.setFont(font, size)
            canvas.drawString(margin, y, line)
            y -= size * 1.3
        y -= gap

    draw(EXPORT_TITLE, "Helvetica-Bold", 18, gap=10)
    draw("Problème : {}".format(problem or "-"), "Helvetica", 11, gap=12)
    for index, step in enumerate(solution.steps, start=1):
        draw("Étape {} : {}".format(index, step.title), "Helvetica-Bold", 13)
        draw(step.content, "Helvetica", 11)
        if step.formula:
            draw(step.formula, "Courier", 11)
        y -= 6
    draw("Réponse finale : {}".format(solution.final_answer), "Helvetica-Bold", 12)

    canvas.showPage()
    canvas.save()
    return str(output)


def export_solution(problem: str, solution: Solution, output_path: str) -> str:
    """Exports by file suffix: `.md`, `.tex` or `.pdf`."""
    suffix = Path(output_path).suffix.lower()
    if suffix in {".md", ".markdown"}:
        return export_markdown(problem, solution, output_path)
    if suffix == ".tex":
        return export_latex(problem, solution, output_path)
    if suffix == ".pdf":
        return export_pdf(problem, solution, output_path)
    raise ValueError("Unsupported export format: {}".format(suffix or output_path))
