"""
Database Schemas

Each Pydantic model represents a MongoDB collection. The collection name is
the snake_case of the class name:
- User -> "user" collection
- Product -> "product" collection
- TeamMember -> "team_member" collection
- GalleryImage -> "gallery_image" collection

Cross-collection references (user_id, product_id) are stored as strings.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from config import PLACEHOLDER_IMAGE

OrderStatus = Literal["pending", "processing", "shipped", "delivered", "cancelled", "refunded"]
PaymentStatus = Literal["pending", "paid", "failed", "refunded"]
PaymentMethod = Literal["card", "cash_on_delivery", "paypal"]
ReservationStatus = Literal["pending", "confirmed", "cancelled", "completed"]


# -----------------------------------------------------------------------------
# Users
# -----------------------------------------------------------------------------

class Address(BaseModel):
    """Postal address, embedded in users and orders"""
    street: str = Field("", description="Street and number")
    city: str = Field("", description="City")
    state: str = Field("", description="State or region")
    zip_code: str = Field("", description="Postal code")
    country: str = Field("", description="Country")
    is_default: bool = Field(False, description="Preferred address for checkout")

    def is_complete(self) -> bool:
        return all(v.strip() for v in (self.street, self.city, self.zip_code, self.country))


class User(BaseModel):
    """Users collection schema (collection name: user)"""
    email: str = Field(..., description="Unique, lower-cased email")
    password: str = Field(..., description="bcrypt hash, never returned to clients")
    name: Optional[str] = Field(None, description="Display name")
    role: Literal["user", "admin"] = Field("user", description="Authorization role")
    addresses: List[Address] = Field(default_factory=list)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


# -----------------------------------------------------------------------------
# Catalog
# -----------------------------------------------------------------------------

class Product(BaseModel):
    """Products collection schema (collection name: product)"""
    name: str = Field(..., min_length=1, description="Product name")
    description: Optional[str] = Field(None, description="Product description")
    price: float = Field(..., ge=0, description="Unit price")
    old_price: Optional[float] = Field(None, ge=0, description="Previous price, shown when on sale")
    category: str = Field(..., min_length=1, description="e.g. food, toys, accessories")
    images: List[str] = Field(default_factory=list, description="Image URLs, first one is the cover")
    stock: int = Field(0, ge=0, description="Units available")

    @field_validator("category")
    @classmethod
    def normalize_category(cls, v: str) -> str:
        return v.strip().lower()


class Review(BaseModel):
    """Reviews collection schema (collection name: review)"""
    product_id: str = Field(..., description="Reference to product _id")
    user_id: str = Field(..., description="Reference to user _id")
    user_name: str = Field(..., description="Reviewer name at time of writing")
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=500)


class Coords(BaseModel):
    lat: Optional[float] = None
    lng: Optional[float] = None


class MapLocation(BaseModel):
    address: Optional[str] = None
    coords: Optional[Coords] = None
    link: Optional[str] = Field(None, description="Embeddable map link")


class Pet(BaseModel):
    """Pets collection schema (collection name: pet)"""
    name: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1, description="e.g. dog, cat")
    type: str = Field(..., min_length=1, description="Usually the breed shown in listings")
    age: str = Field(...)
    color: str = Field(...)
    gender: Literal["Male", "Female", "N/A"] = Field(...)
    size: Literal["Tiny", "Small", "Medium", "Large"] = Field(...)
    weight: float = Field(..., ge=0)
    price: float = Field(..., ge=0)
    location: str = Field(...)
    images: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    available_date: Optional[str] = Field(None, description="e.g. '09, Sep 2023'")
    breed: Optional[str] = None
    date_of_birth: Optional[str] = None
    additional_info: List[str] = Field(default_factory=list)
    map_location: Optional[MapLocation] = None

    @field_validator("category")
    @classmethod
    def normalize_category(cls, v: str) -> str:
        return v.strip().lower()


# -----------------------------------------------------------------------------
# Cart, wishlist and orders
# -----------------------------------------------------------------------------

class CartItem(BaseModel):
    """Embedded model used inside cart.items"""
    id: str = Field(..., description="Line id")
    product_id: str = Field(...)
    name: str = Field(...)
    image_url: str = Field(PLACEHOLDER_IMAGE)
    price: float = Field(..., ge=0, description="Price when the line was added")
    quantity: int = Field(1, ge=1)
    stock: int = Field(0, ge=0, description="Stock when the line was added")


class Cart(BaseModel):
    """Carts collection schema (collection name: cart), one per user"""
    user_id: str = Field(...)
    items: List[CartItem] = Field(default_factory=list)
    total_price: float = Field(0.0, ge=0, description="Computed sum of price * quantity")


class WishlistItem(BaseModel):
    id: str = Field(...)
    product_id: str = Field(...)
    added_at: datetime = Field(...)


class Wishlist(BaseModel):
    """Wishlists collection schema (collection name: wishlist), one per user"""
    user_id: str = Field(...)
    items: List[WishlistItem] = Field(default_factory=list)


class OrderItem(BaseModel):
    """Snapshot of a product at order time"""
    product_id: str = Field(...)
    name: str = Field(...)
    image_url: str = Field(PLACEHOLDER_IMAGE)
    price: float = Field(..., ge=0)
    quantity: int = Field(..., ge=1)


class PaymentResult(BaseModel):
    id: Optional[str] = None
    status: Optional[str] = None
    update_time: Optional[str] = None
    email_address: Optional[str] = None


class Order(BaseModel):
    """Orders collection schema (collection name: order)"""
    user_id: str = Field(...)
    items: List[OrderItem] = Field(..., min_length=1)
    shipping_address: Address = Field(...)
    billing_address: Optional[Address] = None
    subtotal: float = Field(0.0, ge=0)
    shipping_price: float = Field(0.0, ge=0)
    tax_price: float = Field(0.0, ge=0)
    total_price: float = Field(0.0, ge=0)
    order_status: OrderStatus = Field("pending")
    payment_status: PaymentStatus = Field("pending")
    payment_method: PaymentMethod = Field(...)
    payment_result: Optional[PaymentResult] = None
    is_paid: bool = Field(False)
    paid_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None


# -----------------------------------------------------------------------------
# Site content
# -----------------------------------------------------------------------------

class GalleryImage(BaseModel):
    """Gallery collection schema (collection name: gallery_image)"""
    image_url: str = Field(..., description="http(s) URL ending in an image extension")


class Social(BaseModel):
    facebook: str = "#"
    twitter: str = "#"
    instagram: str = "#"
    youtube: str = "#"


class TeamContact(BaseModel):
    phone: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    social: Social = Field(...)


class TeamMember(BaseModel):
    """Team directory schema (collection name: team_member)"""
    name: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    experience: str = Field(..., min_length=1)
    contact: TeamContact = Field(...)
    image_url: str = Field(..., min_length=1)
    show_on_home: bool = Field(False, description="Featured on the home page, at most 4")


class Reservation(BaseModel):
    """Pet appointment requests (collection name: reservation)"""
    full_name: str = Field(...)
    email: str = Field(...)
    phone: str = Field(...)
    date: str = Field(..., description="dd/mm/yyyy")
    species: str = Field(...)
    breed: str = Field(...)
    reason: str = Field(...)
    special_note: Optional[str] = None
    status: ReservationStatus = Field("pending")
    admin_notes: Optional[str] = None
