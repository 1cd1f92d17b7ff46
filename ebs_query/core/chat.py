"""Interactive terminal chat for asking questions about the mock EBS data."""

from __future__ import annotations

import argparse
import json
from dataclasses import dataclass, field
from typing import Any, Callable

from ebs_query.core.config import load_settings
from ebs_query.core.dependencies import AppDependencies, build_dependencies
from ebs_query.core.logging_utils import configure_logging
from ebs_query.core.records import QueryRecord
from ebs_query.core.runner import submit_question
from ebs_query.integrations.sql_errors import MockSQLError

_exit_commands = {"/exit", "exit", "quit", ":q"}


@dataclass
class ChatCLI:
    """Simple terminal chat experience built on top of the question pipeline."""

    dependencies: AppDependencies
    input_func: Callable[[str], str] = field(default=input)
    output_func: Callable[[str], None] = field(default=print)
    preview_rows: int = 10

    def start(self) -> None:
        """Launch an interactive chat session."""

        self.output_func(
            "Ask questions about sales orders, work orders, invoices or inventory."
            " Use '/sql <statement>' to run SQL directly, and '/exit' to leave."
        )

        while True:
            try:
                raw = self.input_func("ebs> ")
            except EOFError:
                self.output_func("\nSession ended.")
                break

            question = raw.strip()
            if not question:
                continue
            if question.lower() in _exit_commands:
                self.output_func("Session ended.")
                break
            if question.startswith("/sql"):
                self._handle_sql_command(question)
                continue

            record = submit_question(self.dependencies, question)
            self._render_record(record)

    def _handle_sql_command(self, command: str) -> None:
        parts = command.split(maxsplit=1)
        if len(parts) != 2 or not parts[1].strip():
            self.output_func("Usage: /sql <statement>")
            return
        try:
            rows = self.dependencies.executor.execute(parts[1].strip())
        except MockSQLError as exc:
            self.output_func(f"Error: {exc}")
            return
        self._render_rows(rows)

    def _render_record(self, record: QueryRecord) -> None:
        self.output_func(f"[{record.id}] status: {record.status}")
        if record.ai_interpretation:
            self.output_func(f"Interpretation: {record.ai_interpretation}")
        if record.generated_sql:
            self.output_func(f"SQL: {record.generated_sql}")
        if record.status == "error":
            self.output_func(f"Error: {record.error_message}")
            return
        rows = json.loads(record.result_data or "[]")
        self._render_rows(rows)
        if record.execution_time_ms is not None:
            self.output_func(f"Completed in {record.execution_time_ms} ms")

    def _render_rows(self, rows: list[dict[str, Any]]) -> None:
        self.output_func(f"Rows: {len(rows)}")
        for row in rows[: self.preview_rows]:
            self.output_func("  - " + ", ".join(f"{key}={_format_value(value)}" for key, value in row.items()))
        hidden = len(rows) - self.preview_rows
        if hidden > 0:
            self.output_func(f"  ... {hidden} more row(s)")


def _format_value(value: Any) -> str:
    if value is None:
        return "-"
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def main() -> None:
    parser = argparse.ArgumentParser(description="Chat with the EBS query assistant")
    parser.add_argument("--config", default="configs/dev.yaml", help="Path to the YAML config file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    configure_logging(debug=args.debug)
    settings = load_settings(args.config)
    dependencies = build_dependencies(settings)
    ChatCLI(dependencies=dependencies).start()


if __name__ == "__main__":
    main()
