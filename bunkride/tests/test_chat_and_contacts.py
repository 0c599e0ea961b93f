"""
Contact exchange and trip chat: only the creator and approved riders.
"""

import pytest
from datetime import timedelta

from bunkride.app.core import clock


async def approved_trip(client, creator, rider, headers_for, seats=3):
    payload = {
        "route_from": "Patiala",
        "route_to": "Chandigarh",
        "date": (clock.now().date() + timedelta(days=4)).isoformat(),
        "time": "07:15",
        "transport_mode": "bus",
        "total_seats": seats,
        "total_cost": 900,
    }
    trip = (await client.post("/v1/trips", json=payload, headers=headers_for(creator))).json()
    await client.post(f"/v1/trips/{trip['id']}/requests", headers=headers_for(rider))
    await client.post(f"/v1/trips/{trip['id']}/requests/{rider.id}/approve", headers=headers_for(creator))
    return trip


@pytest.mark.asyncio
async def test_contacts_after_approval(client, alice, bob, headers_for):
    trip = await approved_trip(client, alice, bob, headers_for)

    response = await client.get(f"/v1/trips/{trip['id']}/contacts", headers=headers_for(alice))
    assert response.status_code == 200
    contacts = response.json()["contacts"]
    assert [c["email"] for c in contacts] == ["bob@thapar.edu"]
    assert contacts[0]["role"] == "rider"
    assert contacts[0]["phone"] == "9876543210"

    response = await client.get(f"/v1/trips/{trip['id']}/contacts", headers=headers_for(bob))
    contacts = response.json()["contacts"]
    assert [c["email"] for c in contacts] == ["alice@thapar.edu"]
    assert contacts[0]["role"] == "creator"


@pytest.mark.asyncio
async def test_contacts_respect_privacy_flags(client, alice, make_user, headers_for):
    shy = await make_user("shy@thapar.edu", name="Simran Kaur Dhillon", show_name=False, show_year=False)
    trip = await approved_trip(client, alice, shy, headers_for)

    response = await client.get(f"/v1/trips/{trip['id']}/contacts", headers=headers_for(alice))
    contact = response.json()["contacts"][0]
    assert contact["name"] == "Simran"
    assert contact["year"] is None


@pytest.mark.asyncio
async def test_pending_requester_gets_no_contacts(client, alice, bob, carol, headers_for):
    trip = await approved_trip(client, alice, bob, headers_for)
    await client.post(f"/v1/trips/{trip['id']}/requests", headers=headers_for(carol))

    response = await client.get(f"/v1/trips/{trip['id']}/contacts", headers=headers_for(carol))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_chat_between_members(client, alice, bob, carol, headers_for):
    trip = await approved_trip(client, alice, bob, headers_for)
    url = f"/v1/trips/{trip['id']}/messages"

    response = await client.post(url, json={"text": "Meet at gate 2?"}, headers=headers_for(bob))
    assert response.status_code == 201
    bob_message = response.json()

    await client.post(url, json={"text": "Sure, 7 sharp"}, headers=headers_for(alice))

    response = await client.get(url, headers=headers_for(alice))
    assert [m["text"] for m in response.json()] == ["Meet at gate 2?", "Sure, 7 sharp"]

    # Non-members cannot read or post
    response = await client.get(url, headers=headers_for(carol))
    assert response.status_code == 403
    response = await client.post(url, json={"text": "hello"}, headers=headers_for(carol))
    assert response.status_code == 403

    # Creator may delete anyone's message
    response = await client.delete(f"{url}/{bob_message['id']}", headers=headers_for(alice))
    assert response.status_code == 200
    response = await client.get(url, headers=headers_for(bob))
    assert [m["text"] for m in response.json()] == ["Sure, 7 sharp"]


@pytest.mark.asyncio
async def test_rider_cannot_delete_creators_message(client, alice, bob, headers_for):
    trip = await approved_trip(client, alice, bob, headers_for)
    url = f"/v1/trips/{trip['id']}/messages"
    message = (await client.post(url, json={"text": "Leaving at 7"}, headers=headers_for(alice))).json()

    response = await client.delete(f"{url}/{message['id']}", headers=headers_for(bob))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_chat_message_length(client, alice, bob, headers_for):
    trip = await approved_trip(client, alice, bob, headers_for)
    url = f"/v1/trips/{trip['id']}/messages"

    response = await client.post(url, json={"text": ""}, headers=headers_for(bob))
    assert response.status_code == 422
    response = await client.post(url, json={"text": "x" * 1001}, headers=headers_for(bob))
    assert response.status_code == 422
