"""
Manual smoke run against a live Farm Portal API.
Run the API server first: python api_server.py
Then run this: python scripts/smoke_api.py
"""

import getpass
import json
import os
import traceback

import requests

BASE_URL = os.getenv("FARM_PORTAL_URL", "http://localhost:8000")


def banner(title):
    print("\n" + "=" * 50)
    print(f"CHECK: {title}")
    print("=" * 50)


def show(response):
    print(f"Status Code: {response.status_code}")
    try:
        print(f"Response: {json.dumps(response.json(), indent=2)[:1500]}")
    except ValueError:
        print(f"Response: {response.text[:500]!r}")


def check_health():
    banner("Health Check")
    response = requests.get(f"{BASE_URL}/health")
    show(response)
    return response.status_code == 200


def check_login_invalid():
    banner("Login with Invalid Credentials")
    response = requests.post(
        f"{BASE_URL}/api/auth/login",
        json={"email": "nobody@example.com", "password": "wrong-password"},
    )
    show(response)
    return response.status_code == 401


def login(email, password):
    banner("Login")
    response = requests.post(f"{BASE_URL}/api/auth/login", json={"email": email, "password": password})
    show(response)
    if response.status_code == 200:
        return response.json()
    return None


def check_dashboard_without_token():
    banner("Dashboard Without Token")
    response = requests.get(f"{BASE_URL}/api/dashboard")
    show(response)
    return response.status_code == 401


def check_get(token, path, expected=200):
    banner(f"GET {path}")
    response = requests.get(f"{BASE_URL}{path}", headers={"Authorization": f"Bearer {token}"})
    show(response)
    return response.status_code == expected


def check_expected_date(token):
    banner("Expected Birth Date")
    response = requests.post(
        f"{BASE_URL}/api/breeding/expected-date",
        headers={"Authorization": f"Bearer {token}"},
        json={"breeding_date": "2024-01-01", "animal_type": "rabbit"},
    )
    show(response)
    return response.status_code == 200 and response.json().get("expected_birth") == "2024-02-01"


def check_logout(token):
    banner("Logout")
    response = requests.post(f"{BASE_URL}/api/auth/logout", headers={"Authorization": f"Bearer {token}"})
    show(response)
    return response.status_code == 200


def main():
    print("=" * 50)
    print("Farm Portal API Smoke Run")
    print("=" * 50)
    print(f"Base URL: {BASE_URL}")
    print("Make sure the API server is running!")
    print()

    email = input("Staff email: ").strip()
    password = getpass.getpass("Password: ")
    if not email or not password:
        print("ERROR: email and password are required")
        return

    results = {}

    try:
        results["Health Check"] = check_health()
        results["Login Invalid"] = check_login_invalid()
        results["Dashboard Without Token"] = check_dashboard_without_token()

        session = login(email, password)
        if session:
            token = session["token"]
            staff = session["user"]["role"] in ("administrator", "farm")
            results["Login Valid"] = True
            results["Profile"] = check_get(token, "/api/user/profile")
            results["Sections"] = check_get(token, "/api/sections")
            results["Dashboard"] = check_get(token, "/api/dashboard", 200 if staff else 403)
            if staff:
                results["Inventory Status"] = check_get(token, "/api/inventory/status")
                results["Health Reminders"] = check_get(token, "/api/health/reminders")
                results["Financial Summary"] = check_get(token, "/api/financial/summary")
                results["Expected Birth"] = check_expected_date(token)
            results["Logout"] = check_logout(token)
            results["Dashboard After Logout"] = check_get(token, "/api/dashboard", 401)
        else:
            results["Login Valid"] = False
            print("\nERROR: Could not login. Remaining checks skipped.")

    except requests.RequestException as e:
        print(f"\n\nERROR: {e}")
        traceback.print_exc()

    print("\n" + "=" * 50)
    print("SUMMARY")
    print("=" * 50)
    passed = sum(1 for v in results.values() if v)
    total = len(results)

    for name, result in results.items():
        status = "✓ PASS" if result else "✗ FAIL"
        print(f"{status}: {name}")

    print(f"\nTotal: {passed}/{total} checks passed")
    print("=" * 50)


if __name__ == "__main__":
    main()
