from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from groupledger.api.deps import get_balance_service, get_group_service
from groupledger.api.v1.notifications import notify_invites
from groupledger.core.auth import get_current_user_id
from groupledger.db.session import get_storage
from groupledger.repositories.base import Storage
from groupledger.schemas.balance import GroupBalances, GroupSummary
from groupledger.schemas.group import (
    GroupCreate,
    GroupDeletionSummary,
    GroupResponse,
    InviteRequest,
    MemberResponse,
)
from groupledger.services.balance_service import BalanceService
from groupledger.services.group_service import GroupService

router = APIRouter()

@router.post("", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
async def create_group(
    group_in: GroupCreate,
    current_user_id: str = Depends(get_current_user_id),
    groups: GroupService = Depends(get_group_service)
):
    """Create a group with the caller as admin"""
    return await groups.create_group(
        group_in.name,
        current_user_id,
        description=group_in.description,
        trip_id=group_in.trip_id
    )

@router.get("", response_model=List[GroupSummary])
async def list_groups(
    current_user_id: str = Depends(get_current_user_id),
    balances: BalanceService = Depends(get_balance_service)
):
    """List joined groups with the caller's balance in each"""
    return await balances.summarize_for_user(current_user_id)

@router.get("/{group_id}/balances", response_model=GroupBalances)
async def get_group_balances(
    group_id: str,
    current_user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
    balances: BalanceService = Depends(get_balance_service)
):
    """Net and bilateral balances of every member, relative to the caller"""
    if await storage.groups.get_member(group_id, current_user_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Group not found")
    return await balances.get_group_balances(group_id, current_user_id)

@router.delete("/{group_id}", response_model=GroupDeletionSummary)
async def delete_group(
    group_id: str,
    current_user_id: str = Depends(get_current_user_id),
    groups: GroupService = Depends(get_group_service)
):
    """Delete a group and revert its account effects (admins only)"""
    return await groups.delete_group(group_id, current_user_id)

@router.post("/{group_id}/members", response_model=List[MemberResponse])
async def invite_members(
    group_id: str,
    request: InviteRequest,
    current_user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
    groups: GroupService = Depends(get_group_service)
):
    """Invite users to a group"""
    invited = await groups.invite_members(group_id, current_user_id, request.user_ids)
    group = await storage.groups.get_group(group_id)
    if group and invited:
        await notify_invites(storage, group, current_user_id, [m.user_id for m in invited])
    return invited

@router.post("/{group_id}/accept", response_model=MemberResponse)
async def accept_invite(
    group_id: str,
    current_user_id: str = Depends(get_current_user_id),
    groups: GroupService = Depends(get_group_service)
):
    return await groups.accept_invite(group_id, current_user_id)

@router.post("/{group_id}/reject", response_model=MemberResponse)
async def reject_invite(
    group_id: str,
    current_user_id: str = Depends(get_current_user_id),
    groups: GroupService = Depends(get_group_service)
):
    return await groups.reject_invite(group_id, current_user_id)
