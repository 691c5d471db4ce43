from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.core.config import settings
from app.core.exceptions import ServiceError
from app.core.logging import configure_logging
from app.models import registry  # noqa: F401
from app.endpoints import avatar, course, course_progress, enrollment, notification, promo_code, social, user
from app.middleware.exceptions import (
    global_exception_handler, http_exception_handler, service_exception_handler, validation_exception_handler
)
from app.middleware.logging import RequestLoggingMiddleware

configure_logging()

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(RequestLoggingMiddleware)

app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(ServiceError, service_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

app.include_router(course.router, prefix="/courses", tags=["Courses"])
app.include_router(enrollment.router, tags=["Enrollments"])
app.include_router(course_progress.router, tags=["Course Progress"])
app.include_router(promo_code.router, prefix="/promo-codes", tags=["Promo Codes"])
app.include_router(avatar.router, prefix="/avatars", tags=["Avatars"])
app.include_router(user.router, prefix="/users", tags=["Users"])
app.include_router(social.router, prefix="/social", tags=["Social"])
app.include_router(notification.router, prefix="/notifications", tags=["Notifications"])

@app.get("/health", tags=["Health"])
def health_check():
    return {"status": "ok"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
