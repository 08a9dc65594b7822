"""
Tests for the sharing endpoints: invitations and peers.
"""

from ledger_share.api.deps import remote_store
from ledger_share.main import app
from ledger_share.remote.base import RemoteStoreError


class BrokenStore:

    def get_or_create_folder(self, name):
        raise RemoteStoreError("drive unavailable", status_code=503)


def send_invitation(client, invited="bob@x.com", role="WRITER", ref="r1"):
    """Helper: send an invitation and return its JSON."""
    body = {"invited_email": invited, "role": role}
    if ref is not None:
        body["snapshot_ref"] = ref
    response = client.post("/sharing/invitations", json=body)
    assert response.status_code == 201, response.text
    return response.json()


def carol_envelope(invitation_id="inv-carol"):
    return {
        "invitationId": invitation_id,
        "invitedEmail": "alice@example.com",
        "inviterEmail": "carol@example.com",
        "requestedRole": "READER",
        "inviterSnapshotRef": "carol-ref",
        "createdAt": "2024-02-01T09:00:00Z",
    }


# --- Invitation Endpoint Tests ---

class TestSendInvitation:

    def test_send_with_explicit_ref(self, client):
        data = send_invitation(client)

        assert data["status"] == "PENDING"
        assert data["direction"] == "SENT"
        assert data["inviter_email"] == "alice@example.com"
        assert data["inviter_snapshot_ref"] == "r1"

    def test_send_publishes_first_without_ref(self, client, remote):
        data = send_invitation(client, ref=None)

        ref = data["inviter_snapshot_ref"]
        assert ref == "PersonalBudgetBackups/my_personalbudget_data.json"
        assert remote.download(ref).startswith(b"{")
        assert client.get("/snapshots/current").json()["object_ref"] == ref

    def test_publish_failure_blocks_invitation(self, client):
        app.dependency_overrides[remote_store] = lambda: BrokenStore()

        response = client.post(
            "/sharing/invitations", json={"invited_email": "bob@x.com", "role": "READER"},
        )

        assert response.status_code == 502
        assert client.get("/sharing/invitations/sent").json() == []

    def test_unknown_role_rejected(self, client):
        response = client.post(
            "/sharing/invitations",
            json={"invited_email": "bob@x.com", "role": "OWNER", "snapshot_ref": "r1"},
        )
        assert response.status_code == 422

    def test_list_sent(self, client):
        send_invitation(client)
        sent = client.get("/sharing/invitations/sent").json()
        assert [i["invited_email"] for i in sent] == ["bob@x.com"]


class TestAcceptAndReject:

    def test_accept_creates_peer(self, client):
        invitation = send_invitation(client)

        response = client.post(f"/sharing/invitations/{invitation['invitation_id']}/accept")

        assert response.status_code == 200
        peer = response.json()
        assert peer["peer_id"] == "alice@example.com"
        assert peer["my_role_for_their_data"] == "WRITER"
        assert peer["their_remote_snapshot_ref"] == "r1"
        assert peer["role_given_by_me"] is None

    def test_second_accept_conflicts(self, client):
        invitation = send_invitation(client)
        url = f"/sharing/invitations/{invitation['invitation_id']}/accept"
        client.post(url)

        response = client.post(url)

        assert response.status_code == 409
        assert response.json()["detail"] == "invitation invalid or already processed"
        assert len(client.get("/sharing/peers").json()) == 1

    def test_reject_then_accept_conflicts(self, client):
        invitation = send_invitation(client)
        invitation_id = invitation["invitation_id"]

        rejected = client.post(f"/sharing/invitations/{invitation_id}/reject")
        accepted = client.post(f"/sharing/invitations/{invitation_id}/accept")

        assert rejected.json()["status"] == "REJECTED"
        assert accepted.status_code == 409
        assert client.get("/sharing/peers").json() == []

    def test_accept_unknown_invitation(self, client):
        response = client.post("/sharing/invitations/nope/accept")
        assert response.status_code == 409


class TestEnvelopes:

    def test_export_envelope(self, client):
        invitation = send_invitation(client)

        response = client.get(f"/sharing/invitations/{invitation['invitation_id']}/envelope")

        assert response.status_code == 200
        envelope = response.json()
        assert envelope["invitationId"] == invitation["invitation_id"]
        assert envelope["requestedRole"] == "WRITER"
        assert envelope["inviterSnapshotRef"] == "r1"

    def test_receive_and_list_pending(self, client):
        response = client.post("/sharing/invitations/receive", json=carol_envelope())

        assert response.status_code == 201
        assert response.json()["direction"] == "RECEIVED"
        pending = client.get("/sharing/invitations/received?pending_only=true").json()
        assert [i["invitation_id"] for i in pending] == ["inv-carol"]

    def test_receive_resolved_invitation_conflicts(self, client):
        client.post("/sharing/invitations/receive", json=carol_envelope())
        client.post("/sharing/invitations/inv-carol/reject")

        response = client.post("/sharing/invitations/receive", json=carol_envelope())

        assert response.status_code == 409
        received = client.get("/sharing/invitations/received").json()
        assert [i["status"] for i in received] == ["REJECTED"]
        assert client.get("/sharing/invitations/received?pending_only=true").json() == []

    def test_receive_unknown_role_rejected(self, client):
        envelope = carol_envelope()
        envelope["requestedRole"] = "ADMIN"

        response = client.post("/sharing/invitations/receive", json=envelope)
        assert response.status_code == 422


# --- Peer Endpoint Tests ---

class TestPeers:

    def test_add_and_get_peer(self, client):
        response = client.post("/sharing/peers", json={
            "email": "Dave@X.com",
            "role_given_by_me": "READER",
            "their_snapshot_ref": "dave-ref",
            "my_role_for_their_data": "WRITER",
        })

        assert response.status_code == 201
        peer = client.get("/sharing/peers/dave@x.com").json()
        assert peer["role_given_by_me"] == "READER"
        assert peer["their_remote_snapshot_ref"] == "dave-ref"

    def test_get_unknown_peer(self, client):
        assert client.get("/sharing/peers/nobody@x.com").status_code == 404

    def test_update_role(self, client):
        client.post("/sharing/peers", json={"email": "dave@x.com"})

        response = client.put("/sharing/peers/dave@x.com/role", json={"role": "WRITER"})

        assert response.status_code == 200
        assert response.json()["role_given_by_me"] == "WRITER"

    def test_update_role_of_unknown_peer(self, client):
        response = client.put("/sharing/peers/nobody@x.com/role", json={"role": "READER"})
        assert response.status_code == 404

    def test_remove_peer(self, client):
        client.post("/sharing/peers", json={"email": "dave@x.com"})

        first = client.delete("/sharing/peers/dave@x.com")
        second = client.delete("/sharing/peers/dave@x.com")

        assert first.status_code == 204
        assert second.status_code == 404
        assert client.get("/sharing/peers").json() == []
