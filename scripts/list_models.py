from __future__ import annotations

import argparse
import asyncio
import sys

from mockmate.ai.config import load_ai_config
from mockmate.ai.model_resolver import ModelResolver
from mockmate.ai.providers.gemini_provider import GeminiProvider
from mockmate.ai.types import AIProviderError


def main() -> int:
    parser = argparse.ArgumentParser(description="List the Gemini models visible to GEMINI_API_KEY.")
    parser.add_argument(
        "--probe",
        action="store_true",
        help="Also send a one-word prompt to each candidate id the backend would try.",
    )
    args = parser.parse_args()

    cfg = load_ai_config()
    if cfg.provider != "gemini" or not cfg.api_key:
        print("GEMINI_API_KEY not set", file=sys.stderr)
        return 1

    provider = GeminiProvider(api_key=cfg.api_key)
    try:
        names = provider.list_models()
    except AIProviderError as exc:
        print(f"Error listing models: {exc}", file=sys.stderr)
        names = []

    if names:
        print("Available models:")
        for name in names:
            print(f"- {name}")

    if args.probe or not names:
        print("\nProbing candidate model ids...")
        resolver = ModelResolver(provider, cfg.default_models, label="default")
        for result in asyncio.run(resolver.probe_all()):
            if result["ok"]:
                print(f"✓ {result['id']} - Available")
            else:
                print(f"✗ {result['id']} - Not available: {result['message']}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
