"""
Tests for the snapshot and sync endpoints.

Two users share one remote store here: alice (the client's identity)
and bob, whose snapshot is placed in the store directly.
"""

from ledger_share.services.snapshot_codec import LedgerSnapshotCodec


def publish_bob(remote, snapshot, name="bob_data.json"):
    """Helper: bob publishes his ledger into the shared store."""
    folder = remote.get_or_create_folder("BobBackups")
    return remote.upload(name, LedgerSnapshotCodec().encode(snapshot), "application/json", folder)


def add_bob(client, ref, my_role="READER"):
    body = {"email": "bob@x.com", "their_snapshot_ref": ref}
    if my_role:
        body["my_role_for_their_data"] = my_role
    response = client.post("/sharing/peers", json=body)
    assert response.status_code == 201


class TestSnapshots:

    def test_current_before_publish(self, client):
        assert client.get("/snapshots/current").status_code == 404

    def test_publish_uploads_ledger(self, client, remote):
        client.post("/ledger/categories", json={"name": "Food"})

        response = client.post("/snapshots/publish")

        assert response.status_code == 201
        publication = response.json()
        snapshot = LedgerSnapshotCodec().decode(remote.download(publication["object_ref"]))
        assert [c.name for c in snapshot.categories] == ["Food"]
        assert publication["owner_email"] == "alice@example.com"
        assert publication["byte_size"] > 0

    def test_backups(self, client):
        created = client.post("/snapshots/backups")

        assert created.status_code == 201
        assert created.json()["name"].startswith("personalbudget_backup_")
        listed = client.get("/snapshots/backups").json()
        assert [b["ref"] for b in listed] == [created.json()["ref"]]


class TestSyncPeer:

    def test_sync_merges_peer_ledger(self, client, remote, peer_snapshot):
        add_bob(client, publish_bob(remote, peer_snapshot))

        response = client.post("/sync/peers/bob@x.com")

        assert response.status_code == 200
        result = response.json()
        assert result["status"] == "synced"
        assert (result["categories"], result["budgets"], result["expenses"]) == (2, 1, 2)
        merchants = {e["merchant"] for e in client.get("/ledger/expenses").json()}
        assert merchants == {"Cafe", "Airline"}
        assert client.get("/sharing/peers/bob@x.com").json()["last_sync_at"] is not None

    def test_sync_without_ref(self, client):
        add_bob(client, None)

        response = client.post("/sync/peers/bob@x.com")

        assert response.status_code == 400
        assert client.get("/ledger/expenses").json() == []

    def test_sync_without_role(self, client, remote, peer_snapshot):
        add_bob(client, publish_bob(remote, peer_snapshot), my_role=None)

        assert client.post("/sync/peers/bob@x.com").status_code == 403

    def test_sync_unknown_peer(self, client):
        assert client.post("/sync/peers/nobody@x.com").status_code == 404

    def test_corrupt_snapshot(self, client, remote):
        folder = remote.get_or_create_folder("BobBackups")
        ref = remote.upload("bob_data.json", b"not json", "application/json", folder)
        add_bob(client, ref)

        response = client.post("/sync/peers/bob@x.com")

        assert response.status_code == 422
        assert client.get("/sharing/peers/bob@x.com").json()["last_sync_at"] is None

    def test_missing_object(self, client, remote):
        remote.get_or_create_folder("BobBackups")
        add_bob(client, "BobBackups/gone.json")

        assert client.post("/sync/peers/bob@x.com").status_code == 502


class TestSyncAll:

    def test_reports_each_peer(self, client, remote, peer_snapshot):
        add_bob(client, publish_bob(remote, peer_snapshot))
        client.post("/sharing/peers", json={
            "email": "carol@x.com",
            "their_snapshot_ref": "BobBackups/missing.json",
            "my_role_for_their_data": "READER",
        })

        response = client.post("/sync/all")

        assert response.status_code == 200
        results = {r["peer_id"]: r for r in response.json()}
        assert results["bob@x.com"]["status"] == "synced"
        assert results["carol@x.com"]["status"] == "failed"
        assert results["carol@x.com"]["error"]
        assert len(client.get("/ledger/expenses").json()) == 2
