"""
Tests for Firebase initialization and the Firestore storage backend
"""

import base64
import json
from datetime import datetime
from unittest.mock import MagicMock

import pytest
from google.api_core import exceptions as google_exceptions

from seatsync.core.config import Settings
from seatsync.core.errors import NotFoundError, PermanentStoreError, TransientStoreError
from seatsync.services import firebase_client
from seatsync.services.firebase_client import FirebaseState, load_credentials_info
from seatsync.services.repositories import GUESTS, TABLES, FirestoreSeatingStore, WriteOp

SERVICE_ACCOUNT = {"type": "service_account", "project_id": "seatsync-test"}


@pytest.fixture
def fake_sdk(monkeypatch):
    """Stand-in for the firebase_admin module and credential loader"""
    sdk = MagicMock()
    sdk._apps = {}

    def initialize_app(cred):
        sdk._apps["[DEFAULT]"] = cred

    sdk.initialize_app.side_effect = initialize_app
    monkeypatch.setattr(firebase_client, "firebase_admin", sdk)
    monkeypatch.setattr(firebase_client.credentials, "Certificate", lambda info: ("cert", info["project_id"]))
    return sdk


def test_credentials_sources():
    encoded = base64.b64encode(json.dumps(SERVICE_ACCOUNT).encode()).decode()

    assert load_credentials_info(Settings(FIREBASE_CREDENTIALS_JSON=json.dumps(SERVICE_ACCOUNT))) == SERVICE_ACCOUNT
    assert load_credentials_info(Settings(FIREBASE_CREDENTIALS_JSON=None, FIREBASE_CREDENTIALS_B64=encoded)) == SERVICE_ACCOUNT
    assert load_credentials_info(Settings(
        FIREBASE_CREDENTIALS_JSON=None,
        FIREBASE_CREDENTIALS_B64=None,
        FIREBASE_CREDENTIALS_FILE="/does/not/exist.json",
    )) is None


def test_credentials_from_file(tmp_path):
    path = tmp_path / "sa.json"
    path.write_text(json.dumps(SERVICE_ACCOUNT), encoding="utf-8")

    config = Settings(FIREBASE_CREDENTIALS_JSON=None, FIREBASE_CREDENTIALS_B64=None, FIREBASE_CREDENTIALS_FILE=str(path))
    assert load_credentials_info(config) == SERVICE_ACCOUNT


def test_initialize_is_idempotent(fake_sdk):
    state = FirebaseState(Settings(FIREBASE_CREDENTIALS_JSON=json.dumps(SERVICE_ACCOUNT)))

    state.initialize()
    state.initialize()

    assert state.initialized
    assert fake_sdk.initialize_app.call_count == 1


def test_initialize_reuses_existing_app(fake_sdk):
    fake_sdk._apps["[DEFAULT]"] = object()
    state = FirebaseState(Settings(FIREBASE_CREDENTIALS_JSON=None, FIREBASE_CREDENTIALS_B64=None, FIREBASE_CREDENTIALS_FILE=None))

    state.initialize()

    assert state.initialized
    fake_sdk.initialize_app.assert_not_called()


def test_initialize_without_credentials(fake_sdk):
    state = FirebaseState(Settings(FIREBASE_CREDENTIALS_JSON=None, FIREBASE_CREDENTIALS_B64=None, FIREBASE_CREDENTIALS_FILE=None))

    with pytest.raises(RuntimeError):
        state.initialize()
    assert not state.initialized


# -------- Firestore store --------

def make_doc(doc_id, **fields):
    doc = MagicMock()
    doc.id = doc_id
    doc.exists = True
    doc.to_dict.return_value = fields
    return doc


@pytest.fixture
def client():
    return MagicMock()


def test_firestore_reads(client):
    client.collection.return_value.where.return_value.order_by.return_value.get.return_value = [
        make_doc("g1", event_id="ev1", user_id="u1", first_name="Ada", table_id="t1"),
    ]
    store = FirestoreSeatingStore(client)

    guests = store.list_guests("ev1")

    assert [(g.id, g.display_name, g.table_id) for g in guests] == [("g1", "Ada", "t1")]
    client.collection.assert_called_with(GUESTS)
    client.collection.return_value.where.assert_called_with("event_id", "==", "ev1")


def test_firestore_missing_event(client):
    client.collection.return_value.document.return_value.get.return_value.exists = False

    assert FirestoreSeatingStore(client).get_event("ev1") is None


def test_firestore_commit_uses_one_batch(client):
    batch = client.batch.return_value
    store = FirestoreSeatingStore(client)

    store.commit_batch([
        WriteOp.create(GUESTS, "g1", {"first_name": "Ada"}),
        WriteOp.update(TABLES, "t1", {"name": "Head"}),
        WriteOp.delete(GUESTS, "g2"),
    ])

    client.batch.assert_called_once()
    assert batch.set.call_count == 1
    assert batch.update.call_count == 1
    assert batch.delete.call_count == 1
    batch.commit.assert_called_once()
    _, update_fields = batch.update.call_args[0]
    assert update_fields["name"] == "Head"
    assert "updated_at" in update_fields


@pytest.mark.parametrize(
    "error, expected",
    [
        (google_exceptions.ResourceExhausted("quota"), TransientStoreError),
        (google_exceptions.DeadlineExceeded("slow"), TransientStoreError),
        (google_exceptions.ServiceUnavailable("down"), TransientStoreError),
        (google_exceptions.Aborted("contention"), TransientStoreError),
        (google_exceptions.NotFound("no document"), NotFoundError),
        (google_exceptions.InvalidArgument("too many writes"), PermanentStoreError),
        (google_exceptions.PermissionDenied("rules"), PermanentStoreError),
    ],
)
def test_firestore_errors_are_classified(client, error, expected):
    client.batch.return_value.commit.side_effect = error

    with pytest.raises(expected):
        FirestoreSeatingStore(client).commit_batch([WriteOp.update(GUESTS, "g1", {"table_id": None})])


def test_firestore_creates_in_one_batch_keep_their_order(client):
    """Each create carries its own increasing created_at, not a shared server timestamp"""
    batch = client.batch.return_value
    ops = [WriteOp.create(TABLES, f"t{i}", {"name": f"Table {i + 1}"}) for i in range(5)]

    FirestoreSeatingStore(client).commit_batch(ops)

    stamps = [call.args[1]["created_at"] for call in batch.set.call_args_list]
    assert len(stamps) == 5
    assert all(isinstance(s, datetime) for s in stamps)
    assert stamps == sorted(stamps)
    assert len(set(stamps)) == 5
