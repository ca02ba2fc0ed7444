from datetime import datetime, timedelta

from estatehub import create_app
from estatehub.extensions import db
from estatehub.models import (
    Listing,
    ListingImage,
    ListingStatus,
    PropertyType,
    SubscriptionStatus,
    User,
    UserRole,
)

app = create_app()

IMAGE_BASE = "https://images.unsplash.com/photo-{}?w=800&h=600&fit=crop"
HOUSE_IMAGES = [
    IMAGE_BASE.format(code)
    for code in (
        "1564013799919-ab600027ffc6",
        "1570129477492-45c003d96e1f",
        "1512917774080-9b274b5ce460",
        "1502672260266-1c1ef2d93688",
        "1493857671505-72967e2e2760",
    )
]
APARTMENT_IMAGES = [HOUSE_IMAGES[i] for i in (3, 4, 2, 1, 0)]

with app.app_context():
    users_data = [
        {
            "email": "admin@demo.com",
            "password": "admin123",
            "name": "Demo Admin",
            "phone": "+6281234567890",
            "role": UserRole.ADMIN,
            "premium": True,
        },
        {
            "email": "seller@demo.com",
            "password": "seller123",
            "name": "Demo Seller",
            "phone": "+6282345678901",
            "role": UserRole.SELLER,
            "premium": True,
        },
        {
            "email": "user@demo.com",
            "password": "user123",
            "name": "Demo User",
            "phone": "+6283456789012",
            "role": UserRole.USER,
            "premium": False,
        },
    ]

    accounts = {}
    for data in users_data:
        user = User.query.filter_by(email=data["email"]).first()
        if not user:
            user = User(
                email=data["email"],
                name=data["name"],
                phone=data["phone"],
                whatsapp=data["phone"],
                role=data["role"],
            )
            user.set_password(data["password"])
            if data["premium"]:
                user.subscription_status = SubscriptionStatus.ACTIVE
                user.subscription_expires_at = (
                    datetime.utcnow() + timedelta(days=365))
                user.is_premium = True
            db.session.add(user)
            db.session.flush()
            print(f"Created account: {data['email']} / {data['password']}")
        accounts[data["role"]] = user

    seller = accounts[UserRole.SELLER]

    listings_data = [
        {
            "title": "Rumah Mewah di Jakarta Selatan",
            "description": (
                "Rumah modern dengan desain minimalis, dilengkapi dengan "
                "fasilitas lengkap. Dekat pusat perbelanjaan dan sekolah."
            ),
            "property_type": PropertyType.HOUSE,
            "address": "Jl. Sudirman No. 123, Jakarta Selatan",
            "city": "Jakarta",
            "province": "DKI Jakarta",
            "postal_code": "12190",
            "latitude": -6.2088,
            "longitude": 106.7753,
            "bedrooms": 4,
            "bathrooms": 3,
            "land_size": 500,
            "building_size": 350,
            "year_built": 2020,
            "price": 2500000000,
            "images": HOUSE_IMAGES,
        },
        {
            "title": "Apartemen Premium di Pusat Kota",
            "description": (
                "Apartemen modern dengan pemandangan kota. Kolam renang, "
                "gym, keamanan 24 jam, parkir basement."
            ),
            "property_type": PropertyType.APARTMENT,
            "address": "Jl. Gatot Subroto No. 456, Jakarta Pusat",
            "city": "Jakarta",
            "province": "DKI Jakarta",
            "postal_code": "12950",
            "latitude": -6.2167,
            "longitude": 106.8,
            "bedrooms": 3,
            "bathrooms": 2,
            "land_size": 0,
            "building_size": 150,
            "year_built": 2022,
            "price": 1500000000,
            "images": APARTMENT_IMAGES,
        },
        {
            "title": "Tanah Kavling di Bintaro",
            "description": (
                "Tanah kavling siap bangun di area berkembang, dekat "
                "stasiun dan akses tol."
            ),
            "property_type": PropertyType.LAND,
            "address": "Jl. Bintaro Utama, Tangerang Selatan",
            "city": "Tangerang Selatan",
            "province": "Banten",
            "postal_code": "15224",
            "latitude": -6.3056,
            "longitude": 106.7,
            "land_size": 300,
            "price": 900000000,
            "images": HOUSE_IMAGES[::-1],
        },
    ]

    for data in listings_data:
        if Listing.query.filter_by(title=data["title"]).first():
            continue
        images = data.pop("images")
        listing = Listing(
            user_id=seller.id,
            status=ListingStatus.PUBLISHED,
            images=images,
            image_count=len(images),
            seller_phone=seller.phone,
            seller_whatsapp=seller.whatsapp,
            **data,
        )
        db.session.add(listing)
        db.session.flush()
        for order, url in enumerate(images):
            db.session.add(ListingImage(
                listing_id=listing.id,
                image_url=url,
                display_order=order,
            ))
        print(f"Created listing: {listing.title}")

    db.session.commit()
    print("Demo data ready")
