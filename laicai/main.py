from __future__ import annotations

import argparse
import json
import logging
import mimetypes
from pathlib import Path

from laicai.app.service import ReportAnalysisService


def main() -> None:
    """本地演示入口：分析一个财报文件，或直接解析一段模型输出。"""
    parser = argparse.ArgumentParser(description="Analyze a financial report file")
    parser.add_argument("path", nargs="?", help="PDF/XLSX/CSV report to analyze")
    parser.add_argument("--model-output", help="skip extraction and the LLM call; parse this text instead")
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s %(message)s")
    service = ReportAnalysisService()
    if args.model_output is not None:
        result = service.pipeline.produce(args.model_output).to_dict()
    elif args.path:
        path = Path(args.path)
        content_type = mimetypes.guess_type(path.name)[0] or ""
        result = service.analyze_document(path.name, path.read_bytes(), content_type)
    else:
        parser.error("either a report path or --model-output is required")
    print(json.dumps(result, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
