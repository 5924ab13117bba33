"""
Article Exporter

Exports rich-text articles to Markdown, plain text, standalone HTML, DOCX and
paginated PDF.

Features:
- One coordinator with an immutable registry of format strategies
- Content from a live editor, raw HTML or a structured editor tree
- Markdown <-> HTML conversion with front matter support
- Headless PDF rendering: staging, image waiting, rasterization, pagination
- Word documents built natively with python-docx
- Colored logging, YAML configuration and a batch CLI

Basic Usage:
    1. Copy config.yaml.example to config.yaml and adjust it
    2. Run: article-export article.md --format pdf --config config.yaml
    3. Or from Python:

        from orchestrator import get_export_service
        result = await get_export_service().export_from_html(html, "Title", options={"format": "docx"})

Example Configuration (config.yaml):
    export:
        default_format: pdf
        output_directory: ./exports
    pdf:
        image_timeout: 3.0
        settle_delay: 0.5
"""

__version__ = "1.0.0"
__description__ = "Article export engine for Markdown, text, HTML, DOCX and PDF"
