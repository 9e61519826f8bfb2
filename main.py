"""Ebb v1.0 — CLI entry point."""

import logging

from ebb import analyze, generate_report

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    result = analyze("sample_data.json")
    print(generate_report(result))
