"""
Tests for team creation and the organization read endpoints
"""
from datetime import timedelta
from uuid import UUID

import pytest
from fastapi.testclient import TestClient
from sqlmodel import select

from helpdesk.core.config import get_settings
from helpdesk.main import app
from helpdesk.models import Member, MemberRole, Team, utcnow
from helpdesk.services import membership_service


def create_team(client, headers, name, organization_id):
    body = {"name": name, "organization_id": str(organization_id) if organization_id else None}
    return client.post("/api/organization/create-team", json=body, headers=headers)


class TestCreateTeam:

    def test_org_owner_becomes_team_owner(self, client, db_session, auth_headers, organization, owner):
        response = create_team(client, auth_headers(owner), "  Support  ", organization.id)

        assert response.status_code == 200
        team = response.json()["team"]
        assert team["name"] == "Support"
        assert team["organization_id"] == str(organization.id)
        assert len(team["members"]) == 1
        assert team["members"][0]["role"] == "owner"
        assert team["members"][0]["user"]["id"] == str(owner.id)

        membership = db_session.exec(select(Member).where(Member.team_id == UUID(team["id"]))).one()
        assert membership.user_id == owner.id
        assert membership.role == MemberRole.OWNER

    def test_org_admin_becomes_team_admin(self, client, make_user, add_member, auth_headers, organization):
        admin = make_user()
        add_member(admin, organization, MemberRole.ADMIN)

        response = create_team(client, auth_headers(admin), "Billing", organization.id)

        assert response.status_code == 200
        assert response.json()["team"]["members"][0]["role"] == "admin"

    def test_duplicate_name_in_same_organization(self, client, make_team, auth_headers, organization, owner):
        make_team(organization, name="Support")

        response = create_team(client, auth_headers(owner), " Support ", organization.id)

        assert response.status_code == 400
        assert response.json() == {"error": "A team with this name already exists"}

    def test_name_comparison_is_case_sensitive(self, client, make_team, auth_headers, organization, owner):
        make_team(organization, name="Support")

        response = create_team(client, auth_headers(owner), "support", organization.id)

        assert response.status_code == 200

    def test_same_name_in_another_organization(
        self, client, make_organization, make_team, auth_headers, organization, owner
    ):
        make_team(make_organization(), name="Support")

        response = create_team(client, auth_headers(owner), "Support", organization.id)

        assert response.status_code == 200

    @pytest.mark.parametrize("name,with_org", [("", True), ("   ", True), ("Support", False)])
    def test_missing_fields(self, client, auth_headers, organization, owner, name, with_org):
        response = create_team(client, auth_headers(owner), name, organization.id if with_org else None)

        assert response.status_code == 400
        assert response.json() == {"error": "Team name and organization ID are required"}

    def test_unknown_organization(self, client, auth_headers, owner):
        response = create_team(client, auth_headers(owner), "Support", "00000000-0000-0000-0000-000000000000")

        assert response.status_code == 404

    def test_plain_member_is_forbidden(self, client, make_user, add_member, auth_headers, organization):
        member = make_user()
        add_member(member, organization)

        response = create_team(client, auth_headers(member), "Support", organization.id)

        assert response.status_code == 403
        assert response.json() == {"error": "Insufficient permissions to create teams"}

    def test_team_scoped_admin_cannot_create_teams(
        self, client, make_user, add_member, make_team, auth_headers, organization
    ):
        team = make_team(organization, name="Support")
        team_admin = make_user()
        add_member(team_admin, organization, MemberRole.ADMIN, team=team)

        response = create_team(client, auth_headers(team_admin), "Billing", organization.id)

        assert response.status_code == 403

    def test_team_limit(self, client, monkeypatch, make_team, auth_headers, organization, owner):
        monkeypatch.setattr(get_settings(), "MAX_TEAMS_PER_ORGANIZATION", 2)
        make_team(organization, name="One")
        make_team(organization, name="Two")

        response = create_team(client, auth_headers(owner), "Three", organization.id)

        assert response.status_code == 400
        assert response.json() == {"error": "Maximum number of teams reached for this organization"}

    def test_team_and_membership_are_created_atomically(
        self, client, db_session, monkeypatch, auth_headers, organization, owner
    ):
        def failing_member(**kwargs):
            raise RuntimeError("membership write failed")

        monkeypatch.setattr(membership_service, "Member", failing_member)
        failing_client = TestClient(app, raise_server_exceptions=False)

        response = create_team(failing_client, auth_headers(owner), "Support", organization.id)

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
        assert db_session.exec(select(Team)).all() == []


class TestReadEndpoints:

    @pytest.fixture
    def team(self, make_team, add_member, organization, owner):
        team = make_team(organization, name="Support")
        add_member(owner, organization, MemberRole.OWNER, team=team)
        return team

    def get(self, client, path, headers, organization):
        return client.get(
            f"/api/organization/{path}",
            params={"organization_id": str(organization.id)},
            headers=headers,
        )

    def test_members_are_distinct_and_use_org_role(
        self, client, make_user, add_member, auth_headers, organization, owner, team
    ):
        agent = make_user(full_name="Alice Agent")
        add_member(agent, organization, MemberRole.MEMBER)
        add_member(agent, organization, MemberRole.ADMIN, team=team)

        response = self.get(client, "members", auth_headers(owner), organization)

        assert response.status_code == 200
        members = response.json()["members"]
        assert [m["full_name"] for m in members] == ["Alice Agent", "Olivia Owner"]
        assert members[0]["role"] == "member"

    def test_teams_include_member_count(
        self, client, make_user, make_team, add_member, auth_headers, organization, owner, team
    ):
        make_team(organization, name="Billing")
        add_member(make_user(), organization, team=team)

        response = self.get(client, "teams", auth_headers(owner), organization)

        assert response.status_code == 200
        teams = response.json()["teams"]
        assert [(t["name"], t["member_count"]) for t in teams] == [("Billing", 0), ("Support", 2)]

    def test_teams_with_members_newest_first(
        self, client, db_session, make_team, auth_headers, organization, owner, team
    ):
        team.created_at = utcnow() - timedelta(days=1)
        db_session.add(team)
        db_session.commit()
        make_team(organization, name="Billing")

        response = self.get(client, "teams-with-members", auth_headers(owner), organization)

        assert response.status_code == 200
        teams = response.json()["teams"]
        assert [t["name"] for t in teams] == ["Billing", "Support"]
        assert teams[1]["members"][0]["role"] == "owner"
        assert teams[1]["members"][0]["user"]["email"] == owner.email

    def test_user_teams_only_lists_team_memberships(self, client, auth_headers, organization, owner, team):
        response = self.get(client, "user-teams", auth_headers(owner), organization)

        assert response.status_code == 200
        teams = response.json()["teams"]
        assert len(teams) == 1
        assert teams[0]["id"] == str(team.id)
        assert teams[0]["role"] == "owner"

    def test_member_info_prefers_org_level_membership(self, client, auth_headers, organization, owner, team):
        response = self.get(client, "member-info", auth_headers(owner), organization)

        assert response.status_code == 200
        member = response.json()["member"]
        assert member["team"] is None
        assert member["organization"]["name"] == "Acme Support"
        assert member["user"]["id"] == str(owner.id)

    def test_member_info_for_outsider_is_not_found(self, client, make_user, auth_headers, organization):
        response = self.get(client, "member-info", auth_headers(make_user()), organization)

        assert response.status_code == 404

    @pytest.mark.parametrize("path", ["members", "teams", "teams-with-members", "user-teams"])
    def test_outsiders_are_denied(self, client, make_user, auth_headers, organization, path):
        response = self.get(client, path, auth_headers(make_user()), organization)

        assert response.status_code == 403
        assert response.json() == {"error": "Access denied"}

    @pytest.mark.parametrize("path", ["members", "teams", "teams-with-members", "user-teams", "member-info"])
    def test_organization_id_is_required(self, client, auth_headers, owner, path):
        response = client.get(f"/api/organization/{path}", headers=auth_headers(owner))

        assert response.status_code == 400
        assert response.json() == {"error": "Organization ID is required"}

    def test_requires_authentication(self, client, organization):
        response = client.get("/api/organization/teams", params={"organization_id": str(organization.id)})

        assert response.status_code == 401
