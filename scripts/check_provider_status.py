#!/usr/bin/env python3
"""
Check illustration provider configuration and client-store status

Usage:
    python scripts/check_provider_status.py
"""

import os
import sys
from pathlib import Path
from datetime import datetime

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


def check_environment():
    """Report which providers are configured and what the client store holds"""
    from core.config.settings import get_settings
    from core.illustration.orchestrator import build_image_chain, build_store
    from core.persistence import DailyQuotaCounter, HistoryLog, TTLCache

    settings = get_settings()

    print("=" * 60)
    print("ILLUSTRATION PROVIDER STATUS CHECK")
    print("=" * 60)
    print()

    # Prompt synthesis
    print("Prompt Synthesis:")
    if settings.openrouter_api_key:
        print("  ✓ OPENROUTER_API_KEY configured")
        print(f"  - Model: {settings.openrouter_model}")
    else:
        print("  ✗ OPENROUTER_API_KEY not configured")
        print("    Illustration requests will be rejected")

    print()

    # Image chain, in the order it is tried
    print("Image Generation Chain:")
    chain = build_image_chain(settings)
    for position, strategy in enumerate(chain.strategies, start=1):
        mark = "✓" if strategy.is_configured else "✗"
        state = "enabled" if strategy.is_configured else f"skipped (set {strategy.credential_name})"
        print(f"  {mark} {position}. {strategy.label}: {state}")

    print()

    # Client store
    print("Client Store:")
    if os.path.exists(settings.storage_path):
        size = os.path.getsize(settings.storage_path)
        print(f"  ✓ Store found: {settings.storage_path}")
        print(f"  - Size: {size:,} bytes of {settings.storage_quota_bytes:,} byte quota")
        modified = datetime.fromtimestamp(os.path.getmtime(settings.storage_path))
        print(f"  - Last modified: {modified.strftime('%Y-%m-%d %H:%M:%S')}")
    else:
        print(f"  - No store yet at: {settings.storage_path}")

    store = build_store(settings)
    quota = DailyQuotaCounter(store, daily_limit=settings.daily_image_limit)
    stats = TTLCache(store).stats()
    print(f"  - Illustrations left today: {quota.remaining()} of {quota.daily_limit}")
    print(f"  - Quota resets in: {quota.time_until_reset()} seconds")
    print(f"  - Cache entries: {stats.total} ({stats.total_size:,} bytes)")
    print(f"  - History items: {len(HistoryLog(store).list())}")

    print()
    print("=" * 60)

    if settings.openrouter_api_key and chain.has_configured_strategy:
        print("✅ Illustration pipeline is configured")
        print()
        print("To start the API:")
        print("  uvicorn backend.main:app --reload")
    else:
        print("⚠️  Illustration pipeline is not fully configured")
        print()
        print("Set OPENROUTER_API_KEY and HUGGINGFACE_API_KEY or REPLICATE_API_TOKEN in .env")

    print("=" * 60)


if __name__ == '__main__':
    # Load environment variables
    from dotenv import load_dotenv
    load_dotenv()

    try:
        check_environment()
    except KeyboardInterrupt:
        print("\nCheck cancelled")
        sys.exit(1)
    except Exception as e:
        print(f"\nError: {e}")
        sys.exit(1)
