"""
Listing API endpoints: image staging, owner-only mutations and public search.
"""

from fastapi import APIRouter, Depends, File, Path, Query, UploadFile, status
from typing import List, Literal, Optional
from uuid import UUID

from estate_api.models.listing import ListingType
from estate_api.models.user import User
from estate_api.repositories.listing import ListingSearchFilters
from estate_api.services.images import UploadResolver
from estate_api.services.listing import ListingService
from estate_api.services.storage import StagedImageStore
from estate_api.schemas.auth import MessageResponse
from estate_api.schemas.listing import (
    ListingCreate,
    ListingUpdate,
    ListingResponse,
    StagedImageResponse
)
from estate_api.schemas.error import get_listing_error_responses
from estate_api.utils.dependencies import (
    get_current_token,
    get_current_user,
    get_listing_service,
    get_staged_image_store,
    get_upload_resolver
)


router = APIRouter(prefix="/listing", tags=["Listings"])


@router.post(
    "/upload",
    response_model=StagedImageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Stage a listing image",
    description="Validate and stage an image. Submit the returned reference as a local image.",
    responses=get_listing_error_responses()
)
async def upload_image(
    file: UploadFile = File(..., description="JPEG, PNG or WebP image"),
    current_user: User = Depends(get_current_user),
    store: StagedImageStore = Depends(get_staged_image_store)
) -> StagedImageResponse:
    staged = await store.stage(file)
    return StagedImageResponse(handle=staged.handle, size=staged.size)


@router.post(
    "/create",
    response_model=ListingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create listing",
    description="Create a listing owned by the signed-in user",
    responses=get_listing_error_responses()
)
async def create_listing(
    listing_data: ListingCreate,
    current_user: User = Depends(get_current_user),
    listing_service: ListingService = Depends(get_listing_service),
    resolver: UploadResolver = Depends(get_upload_resolver)
) -> ListingResponse:
    """
    Create a new listing.

    Local images are uploaded in submission order before anything is
    stored; if one fails nothing is created.
    """
    listing = await listing_service.create_listing(listing_data, current_user, resolver)
    return ListingResponse.from_listing(listing)


@router.put(
    "/update/{listing_id}",
    response_model=ListingResponse,
    status_code=status.HTTP_200_OK,
    summary="Update listing",
    description="Update a listing. Only its owner may do this.",
    responses=get_listing_error_responses()
)
async def update_listing(
    listing_data: ListingUpdate,
    listing_id: UUID = Path(..., description="Listing ID"),
    token: Optional[str] = Depends(get_current_token),
    listing_service: ListingService = Depends(get_listing_service),
    resolver: UploadResolver = Depends(get_upload_resolver)
) -> ListingResponse:
    listing = await listing_service.update_listing(listing_id, listing_data, token, resolver)
    return ListingResponse.from_listing(listing)


@router.delete(
    "/delete/{listing_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete listing",
    description="Delete a listing. Only its owner may do this.",
    responses=get_listing_error_responses()
)
async def delete_listing(
    listing_id: UUID = Path(..., description="Listing ID"),
    token: Optional[str] = Depends(get_current_token),
    listing_service: ListingService = Depends(get_listing_service)
) -> MessageResponse:
    await listing_service.delete_listing(listing_id, token)
    return MessageResponse(message="Listing has been deleted")


@router.get(
    "/get/{listing_id}",
    response_model=ListingResponse,
    status_code=status.HTTP_200_OK,
    summary="Get listing",
    responses=get_listing_error_responses()
)
async def get_listing(
    listing_id: UUID = Path(..., description="Listing ID"),
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingResponse:
    listing = await listing_service.get_listing(listing_id)
    return ListingResponse.from_listing(listing)


@router.get(
    "/get",
    response_model=List[ListingResponse],
    status_code=status.HTTP_200_OK,
    summary="Search listings",
    description="Filter, sort and page through all listings"
)
async def search_listings(
    search_term: Optional[str] = Query(None, max_length=255, description="Case-insensitive match on the name"),
    offer: Optional[bool] = Query(None, description="Only listings with an active offer when true"),
    furnished: Optional[bool] = Query(None, description="Only furnished listings when true"),
    parking: Optional[bool] = Query(None, description="Only listings with parking when true"),
    type: Literal["all", "sale", "rent"] = Query("all", description="Sale, rent or both"),
    sort: Literal["created_at", "regular_price"] = Query("created_at", description="Field to sort by"),
    order: Literal["asc", "desc"] = Query("desc", description="Sort direction"),
    limit: int = Query(9, ge=1, le=100, description="Page size"),
    start_index: int = Query(0, ge=0, description="Number of listings to skip"),
    listing_service: ListingService = Depends(get_listing_service)
) -> List[ListingResponse]:
    filters = ListingSearchFilters(
        search_term=search_term,
        offer=offer,
        furnished=furnished,
        parking=parking,
        listing_type=None if type == "all" else ListingType(type),
        sort=sort,
        order=order,
        limit=limit,
        start_index=start_index
    )
    listings = await listing_service.search_listings(filters)
    return [ListingResponse.from_listing(listing) for listing in listings]
