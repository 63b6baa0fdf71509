import json
import sys
import urllib.error
import urllib.request

from src.pm_gateway.auth.jwt_handler import create_admin_token

# Usage: JWT_SECRET=... python run_api_tests.py [PREDICTION_ID] [WINNING_INDEX]
# Without a prediction id the resolve/audit section is skipped.

BASE = "http://localhost:8000/api/v1"
TOKEN = create_admin_token("smoke-test")

def request(method, path, body=None, token=TOKEN):
    data = json.dumps(body).encode() if body is not None else None
    req = urllib.request.Request(
        f"{BASE}{path}",
        data=data,
        method=method,
        headers={"Content-Type": "application/json"}
    )
    if token:
        req.add_header("Authorization", f"Bearer {token}")
    try:
        with urllib.request.urlopen(req) as r:
            return json.loads(r.read())
    except urllib.error.HTTPError as e:
        return json.loads(e.read())

def section(title):
    print(f"\n{'='*60}")
    print(f"### {title} ###")
    print('='*60)

def label(name):
    print(f"\n--- {name} ---")

def out(data):
    print(json.dumps(data, indent=2, ensure_ascii=False))

# ── Auth ───────────────────────────────────────────────────────
section("AUTH")

label("No token -> 1003")
out(request("GET", "/admin/treasury/pools", token=None))

label("Garbage token -> 1003")
out(request("GET", "/admin/treasury/pools", token="not-a-jwt"))

# ── Treasury ───────────────────────────────────────────────────
section("TREASURY")

label("Pool balances")
pools = request("GET", "/admin/treasury/pools")
out(pools)

label("Invariants")
out(request("GET", "/admin/treasury/invariants"))

label("Transfer from legacy alias -> 2002")
out(request("POST", "/admin/treasury/transfer",
            {"from_pool": "main_pool", "to_pool": "treasury", "amount_micros": 1}))

label("Transfer to the same pool -> 2002")
out(request("POST", "/admin/treasury/transfer",
            {"from_pool": "treasury", "to_pool": "treasury", "amount_micros": 1}))

treasury = next(
    (p for p in pools.get("data", {}).get("pools", []) if p["pool_key"] == "treasury"), None
)
if treasury and treasury["balance_micros"] > 0:
    label("Transfer 1 micro treasury -> wheel, then back")
    out(request("POST", "/admin/treasury/transfer",
                {"from_pool": "treasury", "to_pool": "wheel", "amount_micros": 1}))
    out(request("POST", "/admin/treasury/transfer",
                {"from_pool": "wheel", "to_pool": "treasury", "amount_micros": 1}))
else:
    label("Transfer more than available -> 2001")
    out(request("POST", "/admin/treasury/transfer",
                {"from_pool": "treasury", "to_pool": "wheel", "amount_micros": 1}))

# ── Resolution ─────────────────────────────────────────────────
if len(sys.argv) > 1:
    prediction_id = sys.argv[1]
    index = int(sys.argv[2]) if len(sys.argv) > 2 else 0
    section(f"RESOLVE {prediction_id}")

    label(f"Resolve with winning_option_index={index}")
    out(request("POST", f"/admin/predictions/{prediction_id}/resolve",
                {"winning_option_index": index}))

    label("Resolve again -> 3002")
    out(request("POST", f"/admin/predictions/{prediction_id}/resolve",
                {"winning_option_index": index}))

    label("Conservation audit")
    out(request("GET", f"/admin/predictions/{prediction_id}/audit"))

    label("Invariants after settlement")
    out(request("GET", "/admin/treasury/invariants"))

label("Unknown prediction -> 3001")
out(request("POST", "/admin/predictions/does-not-exist/resolve", {"winning_option_index": 0}))

print("\nDone.")
