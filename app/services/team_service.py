import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.domain.errors import NotFoundError, ValidationError
from app.models.department import Department
from app.models.team import Team, TeamMember
from app.models.user import User, UserRole
from app.schemas.team import TeamCreate, TeamUpdate

logger = logging.getLogger(__name__)

# Roles allowed to lead a team outside their own department
CROSS_DEPARTMENT_LEADER_ROLES = (UserRole.MANAGER, UserRole.HR_ADMIN)


class TeamService:
    """Teams inside a department, with a leader and members"""

    def __init__(self, db: Session):
        self.db = db

    def _get(self, team_id: int) -> Team:
        team = self.db.query(Team).filter(Team.id == team_id).first()
        if not team:
            raise NotFoundError("Team not found")
        return team

    def _check_department(self, department_id: int):
        if not self.db.query(Department).filter(Department.id == department_id).first():
            raise NotFoundError("Department not found")

    def _check_leader(self, leader_id: Optional[int], department_id: int):
        if leader_id is None:
            return
        leader = self.db.query(User).filter(User.id == leader_id).first()
        if not leader:
            raise NotFoundError("Leader not found")
        if leader.department_id != department_id and leader.role not in CROSS_DEPARTMENT_LEADER_ROLES:
            raise ValidationError("Leader must be in the same department or be a manager")

    def get_all(self) -> List[Team]:
        """Active teams, newest first"""
        return (
            self.db.query(Team)
            .filter(Team.is_active == True)  # noqa: E712
            .order_by(Team.created_at.desc(), Team.id.desc())
            .all()
        )

    def get_by_id(self, team_id: int) -> Team:
        return self._get(team_id)

    def get_by_department(self, department_id: int) -> List[Team]:
        return (
            self.db.query(Team)
            .filter(Team.department_id == department_id, Team.is_active == True)  # noqa: E712
            .order_by(Team.name)
            .all()
        )

    def get_by_leader(self, leader_id: int) -> List[Team]:
        return (
            self.db.query(Team)
            .filter(Team.leader_id == leader_id, Team.is_active == True)  # noqa: E712
            .order_by(Team.name)
            .all()
        )

    def create(self, data: TeamCreate) -> Team:
        self._check_department(data.department_id)
        self._check_leader(data.leader_id, data.department_id)

        team = Team(
            name=data.name.strip(),
            description=data.description,
            department_id=data.department_id,
            leader_id=data.leader_id,
        )
        self.db.add(team)
        self.db.commit()
        self.db.refresh(team)
        logger.info(f"Team created: {team.name} (id={team.id})")
        return team

    def update(self, team_id: int, data: TeamUpdate) -> Team:
        team = self._get(team_id)
        updates = data.model_dump(exclude_unset=True)

        if updates.get("department_id") is not None:
            self._check_department(updates["department_id"])
        if updates.get("leader_id") is not None:
            self._check_leader(updates["leader_id"], updates.get("department_id") or team.department_id)
        if updates.get("name") is not None:
            updates["name"] = updates["name"].strip()

        for field, value in updates.items():
            setattr(team, field, value)

        self.db.commit()
        self.db.refresh(team)
        logger.info(f"Team {team_id} updated: {sorted(updates)}")
        return team

    def delete(self, team_id: int) -> Team:
        """Soft delete, memberships are kept"""
        team = self._get(team_id)
        team.is_active = False
        self.db.commit()
        self.db.refresh(team)
        logger.info(f"Team {team_id} deactivated")
        return team

    def add_member(self, team_id: int, user_id: int) -> TeamMember:
        team = self.db.query(Team).filter(Team.id == team_id).first()
        if not team or not team.is_active:
            raise NotFoundError("Team not found or inactive")

        user = self.db.query(User).filter(User.id == user_id).first()
        if not user or not user.is_active:
            raise NotFoundError("User not found or inactive")

        if self.db.query(TeamMember).filter(TeamMember.team_id == team_id, TeamMember.user_id == user_id).first():
            raise ValidationError("User is already a member of this team")

        membership = TeamMember(team_id=team_id, user_id=user_id)
        self.db.add(membership)
        self.db.commit()
        self.db.refresh(membership)
        logger.info(f"User {user_id} added to team {team_id}")
        return membership

    def remove_member(self, team_id: int, user_id: int):
        membership = (
            self.db.query(TeamMember)
            .filter(TeamMember.team_id == team_id, TeamMember.user_id == user_id)
            .first()
        )
        if not membership:
            raise NotFoundError("User is not a member of this team")

        self.db.delete(membership)
        self.db.commit()
        logger.info(f"User {user_id} removed from team {team_id}")

    def get_members(self, team_id: int) -> List[Dict]:
        team = self._get(team_id)
        memberships = sorted(team.members, key=lambda m: m.joined_at)
        return [
            {
                "id": m.user.id,
                "name": m.user.name,
                "email": m.user.email,
                "role": m.user.role,
                "department": m.user.department,
                "joined_at": m.joined_at,
            }
            for m in memberships
        ]
