import argparse
import logging
import os
import pathlib
import sys

ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from dotenv import find_dotenv, load_dotenv

from src.client.uploader import ApiError, FileRejectedError, TranscriberClient


def main() -> None:
    env_path = find_dotenv(usecwd=True)
    if env_path:
        load_dotenv(dotenv_path=env_path)

    parser = argparse.ArgumentParser(description="Upload an audio file and transcribe it")
    parser.add_argument("audio")
    parser.add_argument("--base-url", default=os.getenv("TRANSCRIBER_API_URL", "http://localhost:8000"))
    parser.add_argument("--token", default=os.getenv("TRANSCRIBER_TOKEN", ""))
    parser.add_argument("--title", default=None)
    parser.add_argument("--language", default="auto")
    parser.add_argument("--prompt", default=None)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")

    if not args.token:
        parser.error("--token (or TRANSCRIBER_TOKEN) is required")

    def show_progress(stage: str, percent: int) -> None:
        print(f"[{percent:3d}%] {stage}")

    with TranscriberClient(args.base_url, args.token) as client:
        try:
            result = client.upload_and_transcribe(
                pathlib.Path(args.audio),
                title=args.title,
                language=args.language,
                prompt=args.prompt,
                on_progress=show_progress,
            )
        except FileRejectedError as e:
            print(f"rejected ({e.code}): {e}")
            sys.exit(2)
        except ApiError as e:
            print(f"server error: {e} {e.payload}")
            sys.exit(1)

    print("credits used:", result["creditsUsed"])
    print("credits remaining:", result["creditsRemaining"])
    print("preview:", result["transcription"]["text"][:200])


if __name__ == "__main__":
    main()
