#!/usr/bin/env python3
"""
Smoke test a running reelscribe server: health, front end, input validation,
and optionally one real transcription.
"""

import argparse
import json

import requests


def check_health(base_url: str) -> bool:
    print("Testing /health")
    try:
        response = requests.get(f"{base_url}/health", timeout=10)
    except requests.RequestException as e:
        print(f"  health request failed: {e}")
        return False
    print(f"  status={response.status_code} body={response.text}")
    return response.status_code == 200 and response.json().get("status") == "ok"


def check_front_end(base_url: str) -> bool:
    print("Testing / (front end)")
    try:
        response = requests.get(f"{base_url}/", timeout=10)
    except requests.RequestException as e:
        print(f"  front end request failed: {e}")
        return False
    print(f"  status={response.status_code}")
    return response.status_code == 200 and "/transcribe" in response.text


def check_missing_url(base_url: str) -> bool:
    print("Testing POST /transcribe without url")
    try:
        response = requests.post(f"{base_url}/transcribe", json={}, timeout=10)
    except requests.RequestException as e:
        print(f"  request failed: {e}")
        return False
    print(f"  status={response.status_code} body={response.text}")
    return response.status_code == 400 and "error" in response.json()


def check_transcribe(base_url: str, url: str) -> bool:
    print(f"Testing POST /transcribe with {url}")
    try:
        response = requests.post(f"{base_url}/transcribe", json={"url": url}, timeout=600)
    except requests.RequestException as e:
        print(f"  request failed: {e}")
        return False
    print(f"  status={response.status_code}")
    print(json.dumps(response.json(), indent=2, ensure_ascii=False))
    return response.status_code == 200


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--base-url", default="http://localhost:3050")
    parser.add_argument("--reel-url", default=None, help="run one real transcription against this URL")
    args = parser.parse_args()
    base_url = args.base_url.rstrip("/")

    checks = [check_health, check_front_end, check_missing_url]
    passed = sum(1 for check in checks if check(base_url))
    total = len(checks)
    if args.reel_url:
        total += 1
        passed += 1 if check_transcribe(base_url, args.reel_url) else 0

    print(f"\nResults: {passed}/{total} checks passed")
    return 0 if passed == total else 1


if __name__ == "__main__":
    raise SystemExit(main())
