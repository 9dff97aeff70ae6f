"""
Tests for notification wording.
"""

from worktrack.models.notification import NotificationKind
from worktrack.models.order import OrderStatus
from worktrack.notifications.synthesizer import (
    ActorRelation,
    ViewerTier,
    actor_relation,
    find_rule,
    synthesize,
)


class TestStatusChange:

    def test_status_change_wording(self, staff_profile):
        payload = {
            "order_id": "order-1",
            "from_status": OrderStatus.IN_PROGRESS,
            "to_status": OrderStatus.COMPLETED,
        }
        draft = synthesize(NotificationKind.STATUS_CHANGE, payload, staff_profile, None, "ORD-1")

        assert draft.title == "Order Status Changed"
        assert draft.message == "ORD-1 moved from In Progress to Completed"
        assert draft.order_id == "order-1"

    def test_status_change_accepts_raw_values(self, client_profile):
        payload = {"order_id": "order-1", "from_status": "not_started", "to_status": "on_hold"}
        draft = synthesize(NotificationKind.STATUS_CHANGE, payload, client_profile, None, "ORD-1")
        assert draft.message == "ORD-1 moved from Not Started to On Hold"


class TestComments:

    def test_client_comment_to_staff_viewer(self, staff_profile, client_profile):
        payload = {"id": "c1", "order_id": "order-1", "author_id": client_profile.id}
        draft = synthesize(NotificationKind.NEW_COMMENT, payload, staff_profile, client_profile, "ORD-1")

        assert draft.title == "Client Message"
        assert draft.message == "Cora Client sent a comment on ORD-1"

    def test_client_without_name_uses_email(self, admin_profile, other_client_profile):
        payload = {"id": "c1", "order_id": "order-2", "author_id": other_client_profile.id}
        draft = synthesize(NotificationKind.NEW_COMMENT, payload, admin_profile, other_client_profile, "ORD-2")
        assert draft.message == "olly@client.test sent a comment on ORD-2"

    def test_staff_comment_to_client_viewer(self, client_profile, staff_profile):
        payload = {"id": "c1", "order_id": "order-1", "author_id": staff_profile.id}
        draft = synthesize(NotificationKind.NEW_COMMENT, payload, client_profile, staff_profile, "ORD-1")

        assert draft.title == "New Comment"
        assert draft.message == "New comment added on ORD-1"

    def test_staff_comment_to_staff_viewer(self, admin_profile, staff_profile):
        payload = {"id": "c1", "order_id": "order-1", "author_id": staff_profile.id}
        draft = synthesize(NotificationKind.NEW_COMMENT, payload, admin_profile, staff_profile, "ORD-1")
        assert draft.title == "New Comment"

    def test_unknown_author_uses_generic_wording(self, staff_profile):
        payload = {"id": "c1", "order_id": "order-1", "author_id": "ghost"}
        draft = synthesize(NotificationKind.NEW_COMMENT, payload, staff_profile, None, "ORD-1")
        assert draft.title == "New Comment"

    def test_own_comment_is_suppressed(self, staff_profile):
        payload = {"id": "c1", "order_id": "order-1", "author_id": staff_profile.id}
        assert synthesize(NotificationKind.NEW_COMMENT, payload, staff_profile, staff_profile, "ORD-1") is None


class TestFiles:

    def test_file_wording(self, staff_profile, client_profile):
        payload = {"id": "f1", "order_id": "order-1", "uploaded_by": client_profile.id, "file_name": "brief.pdf"}
        draft = synthesize(NotificationKind.NEW_FILE, payload, staff_profile, client_profile, "ORD-1")

        assert draft.title == "New File Uploaded"
        assert draft.message == "brief.pdf was uploaded to ORD-1"

    def test_missing_file_name(self, client_profile):
        payload = {"id": "f1", "order_id": "order-1", "uploaded_by": "staff-1"}
        draft = synthesize(NotificationKind.NEW_FILE, payload, client_profile, None, "ORD-1")
        assert draft.message == "A file was uploaded to ORD-1"

    def test_own_upload_is_suppressed(self, client_profile):
        payload = {"id": "f1", "order_id": "order-1", "uploaded_by": client_profile.id, "file_name": "a.zip"}
        assert synthesize(NotificationKind.NEW_FILE, payload, client_profile, client_profile, "ORD-1") is None


class TestRuleLookup:

    def test_relation(self, staff_profile, client_profile):
        assert actor_relation(staff_profile.id, staff_profile, staff_profile) == ActorRelation.SELF
        assert actor_relation(client_profile.id, client_profile, staff_profile) == ActorRelation.CLIENT
        assert actor_relation("ghost", None, staff_profile) == ActorRelation.UNKNOWN

    def test_most_specific_rule_wins(self):
        title, _ = find_rule(NotificationKind.NEW_COMMENT, ViewerTier.STAFF, ActorRelation.CLIENT)
        assert title == "Client Message"
        title, _ = find_rule(NotificationKind.NEW_COMMENT, ViewerTier.CLIENT, ActorRelation.CLIENT)
        assert title == "New Comment"
