# backend/giftbloom/dependencies.py

from fastapi import Depends, Request

from giftbloom.api.order_controller import OrderController
from giftbloom.database import Database
from giftbloom.repositories.order_repository import OrderRepository
from giftbloom.services.order_service import OrderService


# The Database handle is created by create_app() and opened in the lifespan
def get_database(request: Request) -> Database:
    return request.app.state.database


def get_order_repository(db: Database = Depends(get_database)) -> OrderRepository:
    return OrderRepository(db)


def get_order_service(repository: OrderRepository = Depends(get_order_repository)) -> OrderService:
    return OrderService(repository)


# Tests swap the service through app.dependency_overrides[get_order_service]
def get_order_controller(service: OrderService = Depends(get_order_service)) -> OrderController:
    return OrderController(service)
