import itertools

import pytest
from django.test import SimpleTestCase

from ..permissions import (ACCOUNTS_OFFICER, ACTIONS, ADMIN, AUDITOR, CREATE,
                           DELETE_DRAFT, DIRECTOR, EDIT, MANAGER, POST, REJECT,
                           REVERSE, SUBMIT, VIEW, VOID, can_perform,
                           evaluate_permission, grants_action)

STATUSES = (None, "draft", "submitted", "posted", "reversed", "voided")
ROLES = (ADMIN, ACCOUNTS_OFFICER, MANAGER, DIRECTOR, AUDITOR)


class PolicyTableTests(SimpleTestCase):

    """ Admin """
    def test_admin_submits_only_from_draft(self):
        self.assertTrue(can_perform(ADMIN, "draft", SUBMIT).allowed)
        decision = can_perform(ADMIN, "posted", SUBMIT)
        self.assertFalse(decision.allowed)
        self.assertEqual(decision.reason, "Only draft documents can be submitted.")

    def test_admin_posts_only_from_submitted(self):
        self.assertTrue(can_perform(ADMIN, "submitted", POST).allowed)
        decision = can_perform(ADMIN, "draft", POST)
        self.assertFalse(decision.allowed)
        self.assertEqual(decision.reason, "Only submitted documents can be posted.")

    def test_admin_voids_and_reverses_only_posted(self):
        for action in (VOID, REVERSE):
            self.assertTrue(can_perform(ADMIN, "posted", action).allowed)
            self.assertEqual(
                can_perform(ADMIN, "submitted", action).reason,
                "Only posted documents can be voided or reversed.",
            )

    def test_admin_edits_and_deletes_drafts_only(self):
        self.assertTrue(can_perform(ADMIN, "draft", EDIT).allowed)
        self.assertTrue(can_perform(ADMIN, "draft", DELETE_DRAFT).allowed)
        self.assertEqual(
            can_perform(ADMIN, "posted", DELETE_DRAFT).reason,
            "Only draft documents can be deleted.",
        )

    """ Accounts officer (maker) """
    def test_officer_creates_edits_and_submits(self):
        self.assertTrue(can_perform(ACCOUNTS_OFFICER, None, CREATE).allowed)
        self.assertTrue(can_perform(ACCOUNTS_OFFICER, "draft", EDIT).allowed)
        self.assertTrue(can_perform(ACCOUNTS_OFFICER, "draft", SUBMIT).allowed)

    def test_officer_never_posts_or_voids(self):
        for status in STATUSES:
            for action in (POST, VOID, REVERSE):
                decision = can_perform(ACCOUNTS_OFFICER, status, action)
                self.assertFalse(decision.allowed)
                self.assertEqual(decision.reason, "You can submit but not post or void.")

    """ Manager (checker) """
    def test_manager_posts_and_voids(self):
        self.assertTrue(can_perform(MANAGER, "submitted", POST).allowed)
        self.assertTrue(can_perform(MANAGER, "submitted", REJECT).allowed)
        self.assertTrue(can_perform(MANAGER, "posted", VOID).allowed)
        self.assertTrue(can_perform(MANAGER, "posted", REVERSE).allowed)

    def test_manager_cannot_create(self):
        decision = can_perform(MANAGER, None, CREATE)
        self.assertFalse(decision.allowed)
        self.assertEqual(decision.reason, "You have view and posting rights only.")

    """ View-only roles """
    def test_director_and_auditor_view_only(self):
        for role in (DIRECTOR, AUDITOR):
            self.assertTrue(can_perform(role, "posted", VIEW).allowed)
            for action in ACTIONS:
                if action == VIEW:
                    continue
                for status in STATUSES:
                    decision = can_perform(role, status, action)
                    self.assertFalse(decision.allowed)
                    self.assertEqual(decision.reason, "View-only role.")

    def test_unknown_role_is_refused(self):
        self.assertEqual(can_perform("intern", "draft", SUBMIT).reason, "Role not permitted.")


class MultiRoleTests(SimpleTestCase):

    def test_first_granting_role_wins(self):
        decision = evaluate_permission([DIRECTOR, MANAGER], "submitted", POST)
        self.assertTrue(decision.allowed)

    def test_officer_plus_manager_can_create_and_post(self):
        roles = {ACCOUNTS_OFFICER, MANAGER}
        self.assertTrue(evaluate_permission(roles, None, CREATE).allowed)
        self.assertTrue(evaluate_permission(roles, "submitted", POST).allowed)

    def test_denial_prefers_status_reason(self):
        decision = evaluate_permission({ACCOUNTS_OFFICER, MANAGER}, "draft", POST)
        self.assertFalse(decision.allowed)
        self.assertEqual(decision.reason, "Only submitted documents can be posted.")

    def test_denial_without_rule_uses_first_role(self):
        decision = evaluate_permission([DIRECTOR, AUDITOR], "draft", SUBMIT)
        self.assertEqual(decision.reason, "View-only role.")

    def test_empty_roles_may_only_view(self):
        self.assertTrue(evaluate_permission(set(), "posted", VIEW).allowed)
        self.assertFalse(evaluate_permission(set(), "draft", SUBMIT).allowed)

    def test_grants_action(self):
        self.assertTrue(grants_action({MANAGER}, POST))
        self.assertFalse(grants_action({ACCOUNTS_OFFICER}, POST))
        self.assertFalse(grants_action(set(), SUBMIT))


""" Determinism: same input, same decision, whatever the set ordering """


@pytest.mark.parametrize("status,action", list(itertools.product(STATUSES, ACTIONS)))
def test_evaluate_permission_is_deterministic(status, action):
    for size in (1, 2, 3):
        for combo in itertools.combinations(ROLES, size):
            first = evaluate_permission(set(combo), status, action)
            again = evaluate_permission(frozenset(reversed(combo)), status, action)
            assert first == again
            assert first == evaluate_permission(set(combo), status, action)
