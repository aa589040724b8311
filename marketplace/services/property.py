"""
Property service for managing listings with ownership rules.
Handles CRUD operations, search, map markers, features and response building.
"""

from typing import Optional, List, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from marketplace.config import Settings, get_settings
from marketplace.repositories.property import PropertyRepository, PropertySearchFilters
from marketplace.models.property import Property, ListingStatus
from marketplace.models.user import User, UserRole
from marketplace.schemas.property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyResponse,
    PropertySearchParams,
    MapBounds,
    PropertyMarker,
    FeatureResponse,
    SellerSummary
)
from marketplace.services.image import ImageService
from marketplace.services.storage import StorageResolver
from marketplace.utils.exceptions import (
    APIException,
    BadRequestError,
    PropertyNotFoundError,
    PropertyOwnershipError,
    ValidationError,
    InsufficientPermissionsError
)
from marketplace.utils.validators import ValidationUtils
import uuid
import logging

logger = logging.getLogger(__name__)


class PropertyService:
    """
    Property service for managing property listings.
    Draft, inactive and sold listings are only visible to their seller and admins.
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: Optional[Settings] = None,
        resolver: Optional[StorageResolver] = None,
        image_service: Optional[ImageService] = None
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.property_repo = PropertyRepository(db)
        self.image_service = image_service or ImageService(db, self.settings)
        self.resolver = resolver or self.image_service.resolver

    async def create_property(self, property_data: PropertyCreate, current_user: User) -> Property:
        """
        Create a new property listing owned by the current user.

        Args:
            property_data: Property creation data
            current_user: Seller or admin creating the property

        Returns:
            Created property instance

        Raises:
            InsufficientPermissionsError: If user is not a seller or admin
            ValidationError: If a feature id is unknown
        """
        if current_user.role not in (UserRole.SELLER, UserRole.ADMIN):
            raise InsufficientPermissionsError("create properties")

        feature_ids = await self._validate_feature_ids(property_data.feature_ids)
        create_data = property_data.model_dump(exclude={"feature_ids"})
        create_data["seller_id"] = current_user.id

        try:
            property_obj = await self.property_repo.create_property(create_data, feature_ids)
        except Exception as e:
            logger.error(f"Failed to create property for user {current_user.id}: {e}")
            raise BadRequestError(f"Failed to create property: {str(e)}")

        logger.info(f"Property created by user {current_user.email}: {property_obj.title} (ID: {property_obj.id})")
        return property_obj

    async def get_property(self, property_id: str, current_user: Optional[User] = None) -> Property:
        """
        Get property by ID.

        Raises:
            InvalidIdentifierError: If the id is not a UUID
            PropertyNotFoundError: If property doesn't exist or is hidden from the caller
        """
        pid = ValidationUtils.parse_uuid(property_id, "property id")
        property_obj = await self.property_repo.get_by_id(pid)

        if not property_obj or not self._can_view_property(property_obj, current_user):
            raise PropertyNotFoundError(str(pid))

        return property_obj

    async def update_property(self, property_id: str, property_data: PropertyUpdate, current_user: User) -> Property:
        """
        Update a property with ownership validation.

        Raises:
            PropertyNotFoundError: If property doesn't exist
            PropertyOwnershipError: If user doesn't own the property
            ValidationError: If no fields were supplied
        """
        pid = ValidationUtils.parse_uuid(property_id, "property id")
        property_obj = await self.property_repo.get_by_id(pid)
        if not property_obj:
            raise PropertyNotFoundError(str(pid))

        if not current_user.can_manage_property(property_obj.seller_id):
            raise PropertyOwnershipError("You can only update your own properties")

        update_data = property_data.model_dump(exclude_unset=True)
        raw_feature_ids = update_data.pop("feature_ids", None)
        if not update_data and raw_feature_ids is None:
            raise ValidationError("No valid fields provided for update")

        feature_ids = None
        if raw_feature_ids is not None:
            feature_ids = await self._validate_feature_ids(raw_feature_ids)

        try:
            updated = await self.property_repo.update_property(pid, update_data, feature_ids)
        except Exception as e:
            logger.error(f"Failed to update property {pid}: {e}")
            raise BadRequestError(f"Failed to update property: {str(e)}")

        if not updated:
            raise PropertyNotFoundError(str(pid))

        logger.info(f"Property updated by user {current_user.email}: {pid}")
        return updated

    async def delete_property(self, property_id: str, current_user: User) -> bool:
        """
        Delete a property with its images.
        Stored image objects are removed after the rows; failures are left for reconciliation.

        Raises:
            PropertyNotFoundError: If property doesn't exist
            PropertyOwnershipError: If user doesn't own the property
        """
        pid = ValidationUtils.parse_uuid(property_id, "property id")
        property_obj = await self.property_repo.get_by_id(pid)
        if not property_obj:
            raise PropertyNotFoundError(str(pid))

        if not current_user.can_manage_property(property_obj.seller_id):
            raise PropertyOwnershipError("You can only delete your own properties")

        references = [image.image_url for image in property_obj.images]

        deleted = await self.property_repo.delete(pid)
        if not deleted:
            raise PropertyNotFoundError(str(pid))

        removed = await self.image_service.remove_stored_objects(references)
        logger.info(f"Property {pid} deleted by {current_user.email}; removed {removed} of {len(references)} stored image(s)")
        return True

    async def search_properties(
        self,
        params: PropertySearchParams,
        current_user: Optional[User] = None
    ) -> Tuple[List[Property], int]:
        """
        Search listings with filters and pagination.

        Searching a status other than active only returns the caller's own
        listings (every listing for admins, nothing for anonymous callers).

        Returns:
            Tuple of (properties, total count)
        """
        seller_id = None
        if params.listing_status != ListingStatus.ACTIVE and not (current_user and current_user.is_admin):
            if current_user is None:
                return [], 0
            seller_id = current_user.id

        filters = PropertySearchFilters(
            query=params.query,
            city=params.city,
            state=params.state,
            country=params.country,
            min_price=params.min_price,
            max_price=params.max_price,
            min_rooms=params.min_rooms,
            min_bathrooms=params.min_bathrooms,
            property_type=params.property_type,
            operation_status=params.operation_status,
            listing_status=params.listing_status,
            feature_ids=[ValidationUtils.parse_uuid(fid, "feature id") for fid in params.feature_ids],
            seller_id=seller_id
        )

        skip = (params.page - 1) * params.page_size
        return await self.property_repo.search_properties(
            filters,
            skip=skip,
            limit=params.page_size,
            order_by=params.sort_by,
            order_direction=params.sort_order
        )

    async def get_seller_properties(self, current_user: User, page: int = 1, page_size: int = 20) -> Tuple[List[Property], int]:
        """Listings owned by the current user in every status."""
        filters = PropertySearchFilters(listing_status=None, seller_id=current_user.id)
        return await self.property_repo.search_properties(
            filters,
            skip=(page - 1) * page_size,
            limit=page_size,
            order_by="created_at",
            order_direction="desc"
        )

    async def get_map_markers(self, bounds: MapBounds) -> List[PropertyMarker]:
        """Markers for active geocoded listings inside a bounding box."""
        properties = await self.property_repo.get_in_bounds(
            north=bounds.north,
            south=bounds.south,
            east=bounds.east,
            west=bounds.west
        )

        cover_urls = await self.resolver.resolve_many([self._cover_reference(p) for p in properties])
        return [
            PropertyMarker(
                id=str(p.id),
                title=p.title,
                price=float(p.price),
                latitude=float(p.latitude),
                longitude=float(p.longitude),
                property_type=p.property_type,
                operation_status=p.operation_status,
                cover_image_url=url
            )
            for p, url in zip(properties, cover_urls)
        ]

    async def get_features(self) -> List[FeatureResponse]:
        features = await self.property_repo.get_features()
        return [FeatureResponse(**feature.to_dict()) for feature in features]

    async def to_response(self, property_obj: Property, include_images: bool = True) -> PropertyResponse:
        """
        Build the API representation of a property with resolved image URLs.

        Args:
            property_obj: Property with relationships loaded
            include_images: Whether to include the full gallery or only the cover URL
        """
        data = property_obj.to_dict()
        images = list(property_obj.images)

        if include_images:
            image_responses = await self.image_service.to_responses(images)
            cover_url = image_responses[0].image_url if image_responses else None
        else:
            image_responses = []
            cover_url = await self.resolver.resolve_or_keep(self._cover_reference(property_obj))

        seller = property_obj.seller
        return PropertyResponse(
            **data,
            seller=SellerSummary(
                id=str(seller.id),
                full_name=seller.full_name,
                email=seller.email,
                phone=seller.phone
            ) if seller else None,
            images=image_responses,
            image_count=len(images),
            cover_image_url=cover_url,
            features=[FeatureResponse(**feature.to_dict()) for feature in property_obj.features]
        )

    def _cover_reference(self, property_obj: Property) -> Optional[str]:
        cover = property_obj.cover_image
        return cover.image_url if cover else None

    def _can_view_property(self, property_obj: Property, user: Optional[User]) -> bool:
        if property_obj.listing_status == ListingStatus.ACTIVE:
            return True
        return user is not None and user.can_manage_property(property_obj.seller_id)

    async def _validate_feature_ids(self, raw_ids: List[str]) -> List[uuid.UUID]:
        """
        Parse feature ids and check they exist in the catalog.

        Raises:
            ValidationError: If an id is unknown
        """
        try:
            feature_ids = list(dict.fromkeys(ValidationUtils.parse_uuid(fid, "feature id") for fid in raw_ids))
        except APIException as e:
            raise ValidationError(e.detail)

        if not feature_ids:
            return []

        existing = set(await self.property_repo.get_existing_feature_ids(feature_ids))
        unknown = [str(fid) for fid in feature_ids if fid not in existing]
        if unknown:
            raise ValidationError(
                f"Unknown feature ids: {', '.join(unknown)}",
                field_errors=[{"field": "feature_ids", "message": f"Unknown feature id {fid}"} for fid in unknown]
            )

        return feature_ids
