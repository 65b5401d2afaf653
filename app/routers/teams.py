from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from typing import List

from app.database import get_db
from app.models.user import User
from app.schemas.team import TeamCreate, TeamMemberAdd, TeamMemberOut, TeamMembership, TeamOut, TeamUpdate
from app.services.team_service import TeamService
from app.utils.auth import get_current_user, require_hr_admin

router = APIRouter()


@router.get("/", response_model=List[TeamOut])
def get_all_teams(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return TeamService(db).get_all()


@router.get("/by-department/{department_id}", response_model=List[TeamOut])
def get_teams_by_department(
    department_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return TeamService(db).get_by_department(department_id)


@router.get("/by-leader/{leader_id}", response_model=List[TeamOut])
def get_teams_by_leader(
    leader_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return TeamService(db).get_by_leader(leader_id)


@router.get("/{team_id}", response_model=TeamOut)
def get_team(
    team_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return TeamService(db).get_by_id(team_id)


@router.get("/{team_id}/members", response_model=List[TeamMemberOut])
def get_team_members(
    team_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return TeamService(db).get_members(team_id)


# HR admin management

@router.post("/", response_model=TeamOut, status_code=status.HTTP_201_CREATED)
def create_team(
    team: TeamCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_hr_admin),
):
    return TeamService(db).create(team)


@router.put("/{team_id}", response_model=TeamOut)
def update_team(
    team_id: int,
    team: TeamUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_hr_admin),
):
    return TeamService(db).update(team_id, team)


@router.delete("/{team_id}", response_model=TeamOut)
def delete_team(
    team_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_hr_admin),
):
    """Soft delete"""
    return TeamService(db).delete(team_id)


@router.post("/{team_id}/members", response_model=TeamMembership, status_code=status.HTTP_201_CREATED)
def add_team_member(
    team_id: int,
    member: TeamMemberAdd,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_hr_admin),
):
    return TeamService(db).add_member(team_id, member.user_id)


@router.delete("/{team_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_team_member(
    team_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_hr_admin),
):
    TeamService(db).remove_member(team_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
