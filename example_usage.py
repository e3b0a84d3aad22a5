#!/usr/bin/env python3
"""Example usage of the Personalizer API."""

import asyncio
from pathlib import Path

import httpx

API_URL = "http://localhost:3000"

PROMPT = """Nombre: Laura Gómez
Empresa: Moto Rápida
Objetivos: Duplicar las reservas online antes del verano
Timeline: 6 semanas
Precio: 4.800 €"""


async def create_client_example():
    """Upload a logo, create a personalized page and download it."""
    async with httpx.AsyncClient(base_url=API_URL, timeout=180.0) as client:
        logo_url = None
        logo_file = Path("logo.png")
        if logo_file.exists():
            print("1. Uploading logo...")
            response = await client.post(
                "/api/upload-logo",
                files={"logo": (logo_file.name, logo_file.read_bytes(), "image/png")},
            )
            if response.status_code == 200:
                logo_url = response.json()["url"]
                print(f"✓ Logo available at: {logo_url}")
            else:
                print(f"✗ Logo upload failed: {response.json().get('error')}")

        print("\n2. Creating client page...")
        response = await client.post(
            "/api/create-client",
            json={"prompt": PROMPT, "logoUrl": logo_url},
        )
        if response.status_code != 200:
            print(f"✗ Error: {response.status_code}")
            print(f"✗ Details: {response.text}")
            return

        result = response.json()
        print(f"✓ {result['message']}")
        print(f"✓ Client id: {result['clientId']}")
        print(f"✓ Shareable URL: {result['url']}")

        print("\n3. Downloading the rendered page...")
        page = await client.get(f"/client/{result['clientId']}")
        output_file = Path(f"client-{result['clientId']}.html")
        output_file.write_text(page.text, encoding="utf-8")
        print(f"✓ HTML saved to: {output_file.absolute()}")

        record = (await client.get(f"/api/client/{result['clientId']}")).json()
        print(f"✓ Extracted fields: {record['extractedFields']}")


async def health_check_example():
    async with httpx.AsyncClient(base_url=API_URL) as client:
        response = await client.get("/health")
        print(f"Health: {response.json()}")


if __name__ == "__main__":
    print("Personalizer API Example")
    print("=" * 40)
    try:
        asyncio.run(health_check_example())
        asyncio.run(create_client_example())
    except httpx.ConnectError:
        print(f"✗ Could not connect to {API_URL}. Start it with: python run_api.py")
