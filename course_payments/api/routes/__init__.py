from fastapi import APIRouter

from course_payments.api.routes import enrollments, health, payments

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(payments.router, tags=["payments"])
api_router.include_router(enrollments.router, prefix="/enrollments", tags=["enrollments"])
