"""Tests for the invitation expiration and proof auto-approval sweeps."""

from datetime import timedelta

import pytest

from database.marketplace_models import (
    CampaignStatusDB,
    InfluencerInvitation,
    InvitationStatusDB,
    Notification,
    NotificationTypeDB,
    ProofStatusDB,
)
from services.errors import ConflictError
from services.replacement_service import ReplacementService
from services.sweeper import TimeoutSweep, auto_approve_proofs, expire_pending_invitations


@pytest.fixture
def campaign(owner, make_campaign):
    return make_campaign(owner, budget=5000, status=CampaignStatusDB.WAITING_INFLUENCER_RESPONSES)


def reload(db_session, invitation_id):
    db_session.expire_all()
    return db_session.query(InfluencerInvitation).filter(InfluencerInvitation.id == invitation_id).one()


class TestExpirePendingInvitations:

    def test_only_invitations_past_window_expire(self, db_session, campaign, make_influencer,
                                                 make_invitation, now):
        old = make_invitation(campaign, make_influencer("Old"), offered_price=1000,
                              created_at=now - timedelta(hours=49))
        recent = make_invitation(campaign, make_influencer("Recent"), offered_price=1000,
                                 created_at=now - timedelta(hours=47))

        report = expire_pending_invitations(db_session, now=now)

        assert report.sweep == "expire_invitations"
        assert report.processed == 1
        assert report.successful == 1
        expired = reload(db_session, old.id)
        assert expired.status == InvitationStatusDB.DECLINED
        assert expired.responded_at == now
        assert reload(db_session, recent.id).status == InvitationStatusDB.PENDING

    def test_answered_invitations_are_left_alone(self, db_session, campaign, make_influencer,
                                                 make_invitation, now):
        accepted = make_invitation(campaign, make_influencer("Accepted"), status=InvitationStatusDB.ACCEPTED,
                                   created_at=now - timedelta(hours=100), responded_at=now - timedelta(hours=90))

        report = expire_pending_invitations(db_session, now=now)

        assert report.processed == 0
        assert reload(db_session, accepted.id).status == InvitationStatusDB.ACCEPTED

    def test_expiry_triggers_replacement_and_notifies_owner(self, db_session, owner, campaign, make_influencer,
                                                           make_invitation, make_suggestion, now):
        make_invitation(campaign, make_influencer("Silent"), offered_price=2000,
                        created_at=now - timedelta(hours=50))
        substitute = make_influencer("Substitute", min_price=1500)
        make_suggestion(campaign, substitute, match_score=60, in_plan=False)

        report = expire_pending_invitations(db_session, now=now)

        replacement = report.results[0]["replacement"]
        assert replacement["replaced"] is True
        assert replacement["replacement"]["influencer_id"] == substitute.id
        assert replacement["remaining_budget"] == 3500

        new_invitation = db_session.query(InfluencerInvitation).filter(
            InfluencerInvitation.influencer_id == substitute.id
        ).one()
        assert new_invitation.status == InvitationStatusDB.PENDING
        assert new_invitation.created_at == now

        owner_types = {n.type for n in db_session.query(Notification).filter(Notification.user_id == owner.id)}
        assert owner_types == {NotificationTypeDB.INVITATION_EXPIRED, NotificationTypeDB.REPLACEMENT_INVITED}

    def test_second_run_is_a_no_op(self, db_session, campaign, make_influencer, make_invitation,
                                   make_suggestion, now):
        make_invitation(campaign, make_influencer("Silent"), offered_price=2000,
                        created_at=now - timedelta(hours=50))
        make_suggestion(campaign, make_influencer("Substitute", min_price=1500), in_plan=False)

        expire_pending_invitations(db_session, now=now)
        count = db_session.query(InfluencerInvitation).count()
        report = expire_pending_invitations(db_session, now=now)

        assert report.processed == 0
        assert db_session.query(InfluencerInvitation).count() == count

    def test_batch_size_limits_one_run(self, db_session, campaign, make_influencer, make_invitation, now):
        for index in range(3):
            make_invitation(campaign, make_influencer(f"Silent {index}"), offered_price=100,
                            created_at=now - timedelta(hours=60 - index))

        first = expire_pending_invitations(db_session, now=now, batch_size=2)
        second = expire_pending_invitations(db_session, now=now, batch_size=2)

        assert first.processed == 2
        assert second.processed == 1

    def test_one_failure_does_not_stop_the_batch(self, db_session, campaign, make_influencer,
                                                 make_invitation, monkeypatch, now):
        first = make_invitation(campaign, make_influencer("First"), offered_price=100,
                                created_at=now - timedelta(hours=70))
        second = make_invitation(campaign, make_influencer("Second"), offered_price=100,
                                 created_at=now - timedelta(hours=60))

        original = ReplacementService.handle_rejection
        calls = []

        def flaky(self, campaign_id, rejected_influencer_id, now=None):
            calls.append(rejected_influencer_id)
            if len(calls) == 1:
                raise RuntimeError("replacement store unavailable")
            return original(self, campaign_id, rejected_influencer_id, now=now)

        monkeypatch.setattr("services.sweeper.ReplacementService.handle_rejection", flaky)

        report = expire_pending_invitations(db_session, now=now)

        assert report.processed == 2
        assert report.errors == 1
        assert report.successful == 1
        failed = [r for r in report.results if not r["success"]]
        assert failed[0]["id"] == first.id
        assert "replacement store unavailable" in failed[0]["error"]
        assert reload(db_session, second.id).status == InvitationStatusDB.DECLINED

    def test_replacement_conflict_after_expiry_is_an_error(self, db_session, campaign, make_influencer,
                                                          make_invitation, monkeypatch, now):
        silent = make_invitation(campaign, make_influencer("Silent"), offered_price=100,
                                 created_at=now - timedelta(hours=60))

        def conflicting(self, campaign_id, rejected_influencer_id, now=None):
            raise ConflictError("Suggestion was selected concurrently")

        monkeypatch.setattr("services.sweeper.ReplacementService.handle_rejection", conflicting)

        report = expire_pending_invitations(db_session, now=now)

        assert report.skipped == 0
        assert report.errors == 1
        assert report.results[0]["id"] == silent.id
        assert "replacement conflicted" in report.results[0]["error"]
        assert reload(db_session, silent.id).status == InvitationStatusDB.DECLINED


class TestAutoApproveProofs:

    def test_proofs_past_window_are_approved(self, db_session, campaign, make_influencer, make_invitation, now):
        stale = make_invitation(campaign, make_influencer("Stale"), status=InvitationStatusDB.ACCEPTED,
                                proof_status=ProofStatusDB.SUBMITTED, proof_url="https://tiktok.com/v/1",
                                proof_submitted_at=now - timedelta(hours=25))
        fresh = make_invitation(campaign, make_influencer("Fresh"), status=InvitationStatusDB.ACCEPTED,
                                proof_status=ProofStatusDB.SUBMITTED, proof_url="https://tiktok.com/v/2",
                                proof_submitted_at=now - timedelta(hours=23))

        report = auto_approve_proofs(db_session, now=now)

        assert report.sweep == "auto_approve_proofs"
        assert report.successful == 1
        approved = reload(db_session, stale.id)
        assert approved.proof_status == ProofStatusDB.APPROVED
        assert approved.proof_auto_approved
        assert approved.proof_approved_at == now
        assert reload(db_session, fresh.id).proof_status == ProofStatusDB.SUBMITTED

    def test_influencer_is_told_about_automatic_approval(self, db_session, campaign, make_influencer,
                                                         make_invitation, now):
        influencer = make_influencer("Stale")
        make_invitation(campaign, influencer, status=InvitationStatusDB.ACCEPTED,
                        proof_status=ProofStatusDB.SUBMITTED, proof_url="https://tiktok.com/v/1",
                        proof_submitted_at=now - timedelta(hours=30))

        auto_approve_proofs(db_session, now=now)

        notification = db_session.query(Notification).filter(Notification.user_id == influencer.user_id).one()
        assert notification.type == NotificationTypeDB.PROOF_APPROVED
        assert notification.data["automatic"] is True

    def test_rejected_proofs_are_not_approved(self, db_session, campaign, make_influencer, make_invitation, now):
        rejected = make_invitation(campaign, make_influencer("Rejected"), status=InvitationStatusDB.ACCEPTED,
                                   proof_status=ProofStatusDB.REJECTED,
                                   proof_submitted_at=now - timedelta(hours=48))

        assert auto_approve_proofs(db_session, now=now).processed == 0
        assert reload(db_session, rejected.id).proof_status == ProofStatusDB.REJECTED


class TestTimeoutSweep:

    def test_conflicting_rows_are_skipped(self, db_session, now):
        def transition(db, row_id, now, cutoff):
            if row_id == "raced":
                raise ConflictError("already moved")
            return {"note": "ok"}

        sweep = TimeoutSweep("demo", threshold_hours=1, batch_size=10,
                             find_due=lambda db, cutoff, batch_size: ["raced", "fine"],
                             transition=transition)
        report = sweep.run(db_session, now)

        assert report.processed == 2
        assert report.skipped == 1
        assert report.successful == 1
        assert report.results == [{"id": "fine", "success": True, "note": "ok"}]

    def test_cutoff_is_relative_to_now(self, db_session, now):
        seen = {}

        def find_due(db, cutoff, batch_size):
            seen["cutoff"] = cutoff
            seen["batch_size"] = batch_size
            return []

        TimeoutSweep("demo", threshold_hours=48, batch_size=7, find_due=find_due,
                     transition=None).run(db_session, now)

        assert seen == {"cutoff": now - timedelta(hours=48), "batch_size": 7}
