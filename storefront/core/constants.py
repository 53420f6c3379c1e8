# storefront/core/constants.py
"""
Store-wide constants and user-facing (Persian) messages.
"""

STORE_INFO = {
    "name": "مجتبی تحریر",
    "description": "فروشگاه آنلاین لوازم التحریر و نوشت‌افزار",
    "contact": {
        "phone": "021-12345678",
        "mobile": "09123456789",
        "email": "info@mojtabatahrir.com",
        "address": "تهران، خیابان انقلاب، نرسیده به چهارراه کالج، پلاک ۱۲۳",
    },
    "working_hours": {
        "weekdays": "شنبه تا پنج‌شنبه: ۸:۰۰ - ۱۸:۰۰",
        "friday": "جمعه: ۹:۰۰ - ۱۳:۰۰",
    },
    "social_links": {
        "telegram": "https://t.me/mojtabatahrir",
        "instagram": "https://instagram.com/mojtabatahrir",
        "whatsapp": "https://wa.me/989123456789",
    },
}

ORDER_STATUS_LABELS: dict[str, str] = {
    "pending": "در انتظار تایید",
    "confirmed": "تایید شده",
    "processing": "در حال آماده‌سازی",
    "shipped": "ارسال شده",
    "delivered": "تحویل داده شده",
    "cancelled": "لغو شده",
}

USER_TYPE_LABELS: dict[str, str] = {
    "b2b": "عمده",
    "b2c": "تکی",
}

# Cart ceilings
MAX_CART_ITEMS = 100
MAX_PRODUCT_QUANTITY = 1000

# Pagination
DEFAULT_PAGE_LIMIT = 12
MAX_PAGE_LIMIT = 100
RELATED_PRODUCTS_LIMIT = 4

# Search
SEARCH_MIN_LENGTH = 2
SEARCH_MAX_RESULTS = 50

# Cache lifetimes in seconds
CACHE_TTL = {
    "products": 5 * 60,
    "categories": 30 * 60,
    "brands": 30 * 60,
    "prices": 2 * 60,
    "inventory": 1 * 60,
}

# Cookie names (the browser-storage keys of the storefront)
CART_COOKIE = "mojtaba-tahrir-cart"
REMEMBER_EMAIL_COOKIE = "mojtaba-tahrir-user"
REMEMBER_EMAIL_MAX_AGE = 30 * 24 * 60 * 60
# Browsers drop larger cookies (name, value and attributes together)
MAX_COOKIE_BYTES = 4096

# Uploads
MAX_IMAGE_BYTES = 5 * 1024 * 1024  # 5MB

ALLOWED_IMAGE_CONTENT_TYPES: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}

ERROR_MESSAGES = {
    "network": "خطا در اتصال به شبکه",
    "server": "خطا در سرور",
    "not_found": "موردی یافت نشد",
    "unauthorized": "دسترسی غیرمجاز",
    "validation": "اطلاعات وارد شده صحیح نیست",
    "file_size": "حجم فایل بیش از حد مجاز است",
    "file_type": "نوع فایل پشتیبانی نمی‌شود",
}

SUCCESS_MESSAGES = {
    "login": "با موفقیت وارد شدید",
    "logout": "با موفقیت خارج شدید",
    "register": "ثبت نام با موفقیت انجام شد",
    "update": "اطلاعات با موفقیت بروزرسانی شد",
    "delete": "با موفقیت حذف شد",
    "add_to_cart": "محصول به سبد خرید اضافه شد",
    "remove_from_cart": "محصول از سبد خرید حذف شد",
    "order_created": "سفارش با موفقیت ثبت شد",
    "password_reset": "ایمیل بازیابی رمز عبور ارسال شد",
    "contact": "پیام شما با موفقیت ارسال شد",
}
