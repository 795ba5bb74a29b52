"""Дочерний процесс рендеринга PDF

Читает описание документа (JSON) из stdin и пишет байты PDF в stdout.
Запуск: python -m app.domains.export.worker
"""
import json
import sys

from app.domains.export.pdf import PdfDocument, Section, render_pdf


def load_document(raw: bytes) -> PdfDocument:
    payload = json.loads(raw.decode("utf-8"))
    return PdfDocument(
        title=payload["title"],
        sections=[Section(**section) for section in payload["sections"]]
    )


def main() -> int:
    document = load_document(sys.stdin.buffer.read())
    sys.stdout.buffer.write(render_pdf(document))
    sys.stdout.buffer.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
