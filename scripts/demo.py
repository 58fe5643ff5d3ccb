#!/usr/bin/env python3
"""
Manual demo for the ShortLink service.

Walks through the API of a running server and prints what happens:
health check, encoding, decoding, redirects, error handling and store
statistics. Start the server (python main.py) and Redis first.
"""

import os
import sys

import requests

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from shortener_app.exceptions import StoreError  # noqa: E402
from shortener_app.services.mapping_store import MappingStore  # noqa: E402
from shortener_app.store.factory import StoreBackend, StoreFactory  # noqa: E402

BASE_URL = os.environ.get("DEMO_BASE_URL", "http://localhost:8000")

DEMO_URLS = [
    "https://www.python.org",
    "https://github.com/python/cpython",
    "https://stackoverflow.com/questions/tagged/python",
]


class ShortLinkDemo:
    def __init__(self, base_url: str = BASE_URL):
        self.base_url = base_url
        self.http = requests.Session()
        self.encoded = []

    def run(self):
        print("ShortLink URL Shortening Service Demo")
        print("=" * 60)
        print()

        self.check_health()
        self.encode_urls()
        self.decode_urls()
        self.follow_redirects()
        self.check_error_handling()
        self.show_store_stats()

        print("\n✅ Demo completed!")

    def request(self, method: str, path: str, **kwargs):
        try:
            return self.http.request(method, f"{self.base_url}{path}", timeout=5, **kwargs)
        except requests.RequestException as e:
            print(f"❌ Request failed: {e}")
            return None

    def check_health(self):
        print("1. Testing Health Check...")
        response = self.request("GET", "/")
        if response is not None and response.status_code == 200:
            data = response.json()
            print(f"✅ Health: {data['status']} (store {data['store']})")
        else:
            print("❌ Health check failed")
        print()

    def encode_urls(self):
        print("2. Testing URL Encoding...")
        for index, url in enumerate(DEMO_URLS, start=1):
            print(f"Encoding URL {index}: {url}")
            response = self.request("POST", "/encode", json={"url": url})
            if response is not None and response.status_code == 200:
                data = response.json()
                self.encoded.append(data)
                print(f"✅ Encoded to: {data['short_url']} (code: {data['short_code']})")
            elif response is not None:
                print(f"❌ Failed to encode: {response.status_code} - {response.text}")
        print()

    def decode_urls(self):
        print("3. Testing URL Decoding...")
        for encoded in self.encoded:
            short_code = encoded["short_code"]
            response = self.request("GET", f"/decode/{short_code}")
            if response is not None and response.status_code == 200:
                print(f"✅ {short_code} decoded to: {response.json()['original_url']}")
            elif response is not None:
                print(f"❌ Failed to decode {short_code}: {response.status_code} - {response.text}")
        print()

    def follow_redirects(self):
        print("4. Testing Redirect Functionality...")
        for encoded in self.encoded:
            short_code = encoded["short_code"]
            response = self.request("GET", f"/{short_code}", allow_redirects=False)
            if response is not None and response.status_code in (301, 302):
                print(f"✅ Redirect successful: {response.headers['location']}")
            elif response is not None:
                print(f"❌ Redirect failed: {response.status_code} - {response.text}")
        print()

    def check_error_handling(self):
        print("5. Testing Error Handling...")
        response = self.request("POST", "/encode", json={"url": "not-a-valid-url"})
        if response is not None and response.status_code == 400:
            print("✅ Correctly rejected invalid URL")
        elif response is not None:
            print(f"❌ Should have rejected invalid URL: {response.status_code}")

        response = self.request("GET", "/decode/NONEXISTENT")
        if response is not None and response.status_code == 404:
            print("✅ Correctly handled non-existent code")
        elif response is not None:
            print(f"❌ Should have returned 404: {response.status_code}")
        print()

    def show_store_stats(self):
        print("6. Store Statistics...")
        try:
            stats = MappingStore(StoreFactory.create(StoreBackend.REDIS)).stats()
        except StoreError as e:
            print(f"❌ Failed to get store stats: {e}")
        else:
            print(f"+ Total keys: {stats['total_keys']}")
            print(f"+ URL mappings: {stats['url_mappings']}")
            print(f"+ Short codes: {stats['short_codes']}")
        finally:
            StoreFactory.clear_instance()
        print()


if __name__ == "__main__":
    print(f"Make sure the application is running on {BASE_URL} and Redis is up.")
    input("Press Enter to continue...")
    ShortLinkDemo().run()
