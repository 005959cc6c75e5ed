from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from apps.catalog.models import CarType, Service, ServicePrice

CAR_TYPES = [
    ("Salon/Small", Decimal("600.00")),
    ("SUV", Decimal("800.00")),
    ("Van/Bus", Decimal("1000.00")),
    ("Truck", Decimal("1500.00")),
]

SERVICES = [
    ("Full Wash", Decimal("600.00")),
    ("Flash", Decimal("500.00")),
    ("Under-Wash", Decimal("800.00")),
    ("Carpet Wash", Decimal("1000.00")),
    ("Greasing", Decimal("400.00")),
]


class Command(BaseCommand):
    help = "Seed default car types, services and the Full Wash price grid."

    @transaction.atomic
    def handle(self, *args, **options):
        created_types = 0
        car_types = []
        for order, (label, price) in enumerate(CAR_TYPES):
            car_type, created = CarType.objects.get_or_create(label=label, defaults={"sort_order": order})
            car_types.append((car_type, price))
            if created:
                created_types += 1

        created_services = 0
        services = {}
        for name, base_price in SERVICES:
            service, created = Service.objects.get_or_create(name=name, defaults={"base_price": base_price})
            services[name] = service
            if created:
                created_services += 1

        # Full Wash is priced per car type; every other service at its base price.
        created_prices = 0
        for name, service in services.items():
            for car_type, full_wash_price in car_types:
                price = full_wash_price if name == "Full Wash" else service.base_price
                _, created = ServicePrice.objects.get_or_create(
                    service=service,
                    car_type=car_type,
                    defaults={"price": price},
                )
                if created:
                    created_prices += 1

        self.stdout.write(
            self.style.SUCCESS(
                "Seed catalog completed. "
                f"car_types_created={created_types} services_created={created_services} prices_created={created_prices}"
            )
        )
