from fastapi import APIRouter, HTTPException, status

from ugcvideo.models.video_schema import UserProfile
from ugcvideo.services import supabase_client
from ugcvideo.services.user_profile import is_valid_uuid, load_profile


router = APIRouter(prefix="/users", tags=["users"])


@router.get("/{user_id}", response_model=UserProfile)
def get_user(user_id: str):
    if not is_valid_uuid(user_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid user id; please sign in again")
    if not supabase_client.supabase():
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Supabase not configured")
    profile = load_profile(user_id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return profile
