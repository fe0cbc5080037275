import argparse
import os
from pathlib import Path

import uvicorn


def _default_data_dir() -> Path:
    return Path(os.environ.get("QUIZ_DATA_DIR", Path.cwd() / "data"))


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Quiz Trainer server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--data-dir", default=str(_default_data_dir()))
    parser.add_argument("--question-bank", help="Path or http(s) URL of the question bank")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    data_dir = Path(args.data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)
    # Must be set before api.app (and quizcore.config) is imported.
    os.environ["QUIZ_DATA_DIR"] = str(data_dir)
    if args.question_bank:
        os.environ["QUIZ_QUESTION_BANK"] = args.question_bank

    uvicorn.run(
        "api.app:app",
        host=args.host,
        port=args.port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
