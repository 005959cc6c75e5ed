from datetime import datetime
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APITestCase

from apps.audit.models import AuditLog
from apps.catalog.models import CarType, Service, ServicePrice
from apps.configuration.models import AppSettings
from apps.customers.models import Customer
from apps.customers.services import count_washes_in_month
from apps.promotions.models import FeaturedVehicle, Promotion, PromotionCode
from apps.washes.models import Wash
from apps.washes.money import compute_money, generate_receipt_no
from apps.washes.services import create_wash

User = get_user_model()


def local(year, month, day, hour=10):
    return timezone.make_aware(datetime(year, month, day, hour, 0))


class FixedRandom:
    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value

    def choice(self, seq):
        return seq[0]


class MoneyTests(TestCase):
    def test_commission_and_profit_always_add_up_to_price(self):
        commission, profit = compute_money(Decimal("333.33"), Decimal("30"))
        self.assertEqual(commission, Decimal("100.00"))
        self.assertEqual(profit, Decimal("233.33"))
        self.assertEqual(commission + profit, Decimal("333.33"))

    def test_half_cent_rounds_up(self):
        commission, profit = compute_money(Decimal("0.05"), Decimal("50"))
        self.assertEqual(commission, Decimal("0.03"))
        self.assertEqual(profit, Decimal("0.02"))

    def test_free_wash_has_no_money(self):
        self.assertEqual(compute_money(Decimal("0"), Decimal("0")), (Decimal("0.00"), Decimal("0.00")))


class ReceiptNumberTests(TestCase):
    class Digits:
        def randint(self, low, high):
            return 42

    def test_short_receipt_uses_clock_tail_and_random_digits(self):
        receipt = generate_receipt_no(exists=lambda value: False, rng=self.Digits(), clock=lambda: 1700000012345, prefix="SH")
        self.assertEqual(receipt, "SH1234542")

    def test_falls_back_to_full_timestamp_after_collisions(self):
        attempts = []

        def exists(value):
            attempts.append(value)
            return True

        receipt = generate_receipt_no(exists=exists, rng=self.Digits(), clock=lambda: 1700000012345, prefix="SH")
        self.assertEqual(len(attempts), 5)
        self.assertEqual(receipt, "SH1700000012345")


class WashFixtureMixin:
    def build_catalog(self):
        self.service = Service.objects.create(name="Full Wash", base_price=Decimal("600.00"))
        self.suv = CarType.objects.create(label="SUV")
        ServicePrice.objects.create(service=self.service, car_type=self.suv, price=Decimal("800.00"))

    def prior_wash(self, customer, washed_at, **extra):
        values = {
            "service": self.service,
            "car_type": self.suv,
            "customer": customer,
            "vehicle_reg": customer.vehicle_reg or "" if customer else "",
            "unit_price": Decimal("800.00"),
            "commission_pct": Decimal("30.00"),
            "commission_amount": Decimal("240.00"),
            "profit_amount": Decimal("560.00"),
            "washed_at": washed_at,
        }
        values.update(extra)
        return Wash.objects.create(**values)


class RewardCascadeTests(WashFixtureMixin, TestCase):
    def setUp(self):
        self.build_catalog()

    def wash(self, **kwargs):
        kwargs.setdefault("rng", FixedRandom(0.99))
        return create_wash(service=self.service, car_type=self.suv, **kwargs)

    def test_paid_wash_uses_configured_price_and_default_commission(self):
        wash = self.wash(customer_phone="0712345678", washed_at=local(2025, 11, 3))

        self.assertFalse(wash.is_free)
        self.assertEqual(wash.unit_price, Decimal("800.00"))
        self.assertEqual(wash.commission_pct, Decimal("30.00"))
        self.assertEqual(wash.commission_amount, Decimal("240.00"))
        self.assertEqual(wash.profit_amount, Decimal("560.00"))
        self.assertTrue(wash.receipt_no.startswith("SH"))
        self.assertEqual(wash.customer.visits_count, 1)

    def test_thirteenth_wash_of_the_month_is_free(self):
        customer = Customer.objects.create(phone="0711000013")
        for day in range(1, 13):
            self.prior_wash(customer, local(2025, 11, day))
        # Last month's washes do not count towards November.
        self.prior_wash(customer, local(2025, 10, 31, 20))

        thirteenth = self.wash(customer_phone="0711000013", washed_at=local(2025, 11, 15))

        self.assertTrue(thirteenth.is_free)
        self.assertEqual(thirteenth.promo_code, PromotionCode.LOYALTY_13TH)
        self.assertEqual(thirteenth.unit_price, Decimal("0.00"))
        self.assertEqual(thirteenth.commission_pct, Decimal("0.00"))
        self.assertEqual(thirteenth.profit_amount, Decimal("0.00"))

        fourteenth = self.wash(customer_phone="0711000013", washed_at=local(2025, 11, 16))
        self.assertFalse(fourteenth.is_free)
        self.assertEqual(count_washes_in_month(customer, local(2025, 11, 30)), 14)

    def test_loyalty_repeats_every_thirteen_washes_within_the_month(self):
        customer = Customer.objects.create(phone="0711000026")
        for day in range(1, 14):
            self.prior_wash(customer, local(2025, 11, day))

        washes = [self.wash(customer_phone="0711000026", washed_at=local(2025, 11, day)) for day in range(14, 27)]

        # Washes 14 to 25 are charged, the 26th is free again.
        self.assertEqual([wash.is_free for wash in washes[:-1]], [False] * 12)
        self.assertTrue(washes[-1].is_free)
        self.assertEqual(washes[-1].promo_code, PromotionCode.LOYALTY_13TH)
        self.assertEqual(count_washes_in_month(customer, local(2025, 11, 30)), 26)

    def test_failed_insert_does_not_keep_the_new_customer(self):
        with mock.patch.object(Wash.objects, "create", side_effect=IntegrityError("receipt_no")):
            with self.assertRaises(IntegrityError):
                self.wash(customer_phone="0733000001", vehicle_reg="KCZ 555Q", washed_at=local(2025, 11, 4))

        self.assertFalse(Customer.objects.filter(phone_normalized="0733000001").exists())
        self.assertFalse(Customer.objects.filter(vehicle_reg="KCZ555Q").exists())

    def test_loyalty_grants_even_when_promotion_is_inactive(self):
        Promotion.objects.filter(code=PromotionCode.LOYALTY_13TH).update(is_active=False)
        customer = Customer.objects.create(phone="0711000014")
        for day in range(1, 13):
            self.prior_wash(customer, local(2025, 11, day))

        wash = self.wash(customer_phone="0711000014", washed_at=local(2025, 11, 20))

        self.assertTrue(wash.is_free)
        self.assertEqual(wash.promo_code, PromotionCode.LOYALTY_13TH)
        self.assertIsNone(wash.promotion)

    def test_featured_vehicle_is_free_once_per_month(self):
        FeaturedVehicle.objects.create(vehicle_reg="KDA123A", month=datetime(2025, 11, 1).date())

        first = self.wash(vehicle_reg="kda 123a", washed_at=local(2025, 11, 4))
        second = self.wash(vehicle_reg="KDA-123A", washed_at=local(2025, 11, 18))

        self.assertTrue(first.is_free)
        self.assertEqual(first.promo_code, PromotionCode.FEATURED_VEHICLE)
        self.assertFalse(second.is_free)
        self.assertEqual(second.unit_price, Decimal("800.00"))
        self.assertIsNotNone(FeaturedVehicle.objects.get(vehicle_reg="KDA123A").used_at)

    def test_featured_vehicle_can_repeat_when_once_per_month_is_off(self):
        AppSettings.objects.filter(pk=1).update(featured_free_once_per_month=False)
        FeaturedVehicle.objects.create(vehicle_reg="KDA123A", month=datetime(2025, 11, 1).date())

        first = self.wash(vehicle_reg="KDA123A", washed_at=local(2025, 11, 4))
        second = self.wash(vehicle_reg="KDA123A", washed_at=local(2025, 11, 5))

        self.assertTrue(first.is_free)
        self.assertTrue(second.is_free)

    def test_featured_vehicle_needs_active_promotion(self):
        Promotion.objects.filter(code=PromotionCode.FEATURED_VEHICLE).update(is_active=False)
        FeaturedVehicle.objects.create(vehicle_reg="KDA123A", month=datetime(2025, 11, 1).date())

        wash = self.wash(vehicle_reg="KDA123A", washed_at=local(2025, 11, 4))

        self.assertFalse(wash.is_free)

    def test_featured_vehicle_outside_its_month_is_paid(self):
        FeaturedVehicle.objects.create(vehicle_reg="KDA123A", month=datetime(2025, 10, 1).date())
        wash = self.wash(vehicle_reg="KDA123A", washed_at=local(2025, 11, 4))
        self.assertFalse(wash.is_free)

    def test_random_free_wash_respects_daily_cap(self):
        AppSettings.objects.filter(pk=1).update(
            promo_free_enabled=True,
            promo_free_prob=Decimal("0.5000"),
            promo_free_min_visits=0,
            promo_free_daily_cap=1,
        )

        lucky = self.wash(customer_phone="0700000001", washed_at=local(2025, 11, 4, 9), rng=FixedRandom(0.1))
        capped = self.wash(customer_phone="0700000002", washed_at=local(2025, 11, 4, 11), rng=FixedRandom(0.1))
        next_day = self.wash(customer_phone="0700000003", washed_at=local(2025, 11, 5, 9), rng=FixedRandom(0.1))

        self.assertTrue(lucky.is_free)
        self.assertEqual(lucky.promo_code, PromotionCode.RANDOM_FREE)
        self.assertFalse(capped.is_free)
        self.assertTrue(next_day.is_free)

    def test_random_free_wash_needs_identity_visits_and_a_winning_draw(self):
        AppSettings.objects.filter(pk=1).update(
            promo_free_enabled=True,
            promo_free_prob=Decimal("0.5000"),
            promo_free_min_visits=2,
        )
        Customer.objects.create(phone="0700000009", visits_count=5)

        anonymous = self.wash(washed_at=local(2025, 11, 4), rng=FixedRandom(0.0))
        newcomer = self.wash(customer_phone="0700000008", washed_at=local(2025, 11, 4), rng=FixedRandom(0.0))
        unlucky = self.wash(customer_phone="0700000009", washed_at=local(2025, 11, 4), rng=FixedRandom(0.5))
        regular = self.wash(customer_phone="0700000009", washed_at=local(2025, 11, 4), rng=FixedRandom(0.49))

        self.assertIsNone(anonymous.customer)
        self.assertFalse(anonymous.is_free)
        self.assertFalse(newcomer.is_free)
        self.assertFalse(unlucky.is_free)
        self.assertTrue(regular.is_free)

    def test_featured_takes_priority_over_loyalty(self):
        customer = Customer.objects.create(phone="0711000099", vehicle_reg="KBB100B")
        for day in range(1, 13):
            self.prior_wash(customer, local(2025, 11, day))
        FeaturedVehicle.objects.create(vehicle_reg="KBB100B", month=datetime(2025, 11, 1).date())

        wash = self.wash(customer_phone="0711000099", vehicle_reg="KBB100B", washed_at=local(2025, 11, 20))

        self.assertEqual(wash.promo_code, PromotionCode.FEATURED_VEHICLE)

    def test_settings_failure_degrades_to_paid_wash(self):
        def broken_settings():
            raise RuntimeError("settings table unavailable")

        with self.assertLogs("apps.promotions.rewards", level="WARNING") as logs:
            wash = self.wash(
                customer_phone="0712000000",
                commission_pct=Decimal("20.00"),
                washed_at=local(2025, 11, 4),
                settings_provider=broken_settings,
            )

        self.assertFalse(wash.is_free)
        self.assertEqual(wash.unit_price, Decimal("800.00"))
        self.assertEqual(wash.commission_amount, Decimal("160.00"))
        self.assertEqual(wash.profit_amount, Decimal("640.00"))
        self.assertIn("reward evaluation skipped", logs.output[0])

    def test_settings_failure_without_commission_uses_thirty_percent(self):
        def broken_settings():
            raise RuntimeError("settings table unavailable")

        with self.assertLogs("apps.promotions.rewards", level="WARNING"):
            wash = self.wash(washed_at=local(2025, 11, 4), settings_provider=broken_settings)

        self.assertEqual(wash.commission_pct, Decimal("30.00"))
        self.assertEqual(wash.commission_amount, Decimal("240.00"))


class WashMoneyConstraintTests(WashFixtureMixin, TestCase):
    def setUp(self):
        self.build_catalog()

    def test_balanced_split_is_accepted_to_the_cent(self):
        commission, profit = compute_money(Decimal("0.30"), Decimal("33.33"))

        wash = self.prior_wash(
            None,
            local(2025, 11, 4),
            unit_price=Decimal("0.30"),
            commission_pct=Decimal("33.33"),
            commission_amount=commission,
            profit_amount=profit,
        )

        wash.refresh_from_db()
        self.assertEqual(wash.commission_amount + wash.profit_amount, Decimal("0.30"))

    def test_unbalanced_split_is_rejected(self):
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                self.prior_wash(
                    None,
                    local(2025, 11, 4),
                    commission_amount=Decimal("240.00"),
                    profit_amount=Decimal("560.01"),
                )


class WashApiTests(WashFixtureMixin, APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(username="admin", password="admin123", role="ADMIN")
        self.manager = User.objects.create_user(username="manager", password="manager123", role="MANAGER")
        self.build_catalog()

    def auth(self, username, password):
        response = self.client.post(
            "/api/v1/auth/token/",
            {"username": username, "password": password},
            format="json",
        )
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")

    def test_manager_records_paid_wash(self):
        self.auth("manager", "manager123")
        response = self.client.post(
            "/api/v1/washes/",
            {
                "service": str(self.service.id),
                "car_type": str(self.suv.id),
                "customer_phone": "0712 345 678",
                "customer_name": "Jane",
                "vehicle_reg": "kda 123a",
            },
            format="json",
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["unit_price"], "800.00")
        self.assertEqual(response.data["commission_amount"], "240.00")
        self.assertEqual(response.data["profit_amount"], "560.00")
        self.assertEqual(response.data["vehicle_reg"], "KDA123A")
        self.assertEqual(response.data["customer_name"], "Jane")
        self.assertEqual(response.data["created_by"], "manager")
        self.assertTrue(AuditLog.objects.filter(action="wash.create", entity_id=response.data["id"]).exists())

    def test_missing_price_is_rejected_without_writing(self):
        self.auth("manager", "manager123")
        van = CarType.objects.create(label="Van/Bus")
        response = self.client.post(
            "/api/v1/washes/",
            {"service": str(self.service.id), "car_type": str(van.id), "customer_phone": "0712345678"},
            format="json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertIn("unit_price", response.data["fields"])
        self.assertEqual(Wash.objects.count(), 0)

    def test_commission_pct_over_hundred_is_rejected(self):
        self.auth("manager", "manager123")
        response = self.client.post(
            "/api/v1/washes/",
            {"service": str(self.service.id), "car_type": str(self.suv.id), "commission_pct": "120"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("commission_pct", response.data["fields"])

    def test_plate_longer_than_stored_column_is_rejected(self):
        self.auth("manager", "manager123")
        response = self.client.post(
            "/api/v1/washes/",
            {"service": str(self.service.id), "car_type": str(self.suv.id), "vehicle_reg": "K" * 21},
            format="json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertIn("vehicle_reg", response.data["fields"])
        self.assertEqual(Wash.objects.count(), 0)
        self.assertEqual(Customer.objects.count(), 0)

    def test_update_recomputes_commission_and_profit(self):
        self.auth("manager", "manager123")
        wash = self.prior_wash(None, local(2025, 11, 2))

        repriced = self.client.patch(f"/api/v1/washes/{wash.id}/", {"unit_price": "1000.00"}, format="json")
        self.assertEqual(repriced.status_code, 200)
        self.assertEqual(repriced.data["commission_amount"], "300.00")
        self.assertEqual(repriced.data["profit_amount"], "700.00")

        rate_changed = self.client.patch(f"/api/v1/washes/{wash.id}/", {"commission_pct": "25.00"}, format="json")
        self.assertEqual(rate_changed.status_code, 200)
        self.assertEqual(rate_changed.data["commission_amount"], "250.00")
        self.assertEqual(rate_changed.data["profit_amount"], "750.00")

    def test_only_admin_can_delete_wash(self):
        wash = self.prior_wash(None, local(2025, 11, 2))

        self.auth("manager", "manager123")
        self.assertEqual(self.client.delete(f"/api/v1/washes/{wash.id}/").status_code, 403)

        self.auth("admin", "admin123")
        self.assertEqual(self.client.delete(f"/api/v1/washes/{wash.id}/").status_code, 204)
        self.assertFalse(Wash.objects.filter(pk=wash.pk).exists())
        self.assertTrue(AuditLog.objects.filter(action="wash.delete", entity_id=str(wash.id)).exists())

    def test_list_filters_by_local_date_range(self):
        self.auth("manager", "manager123")
        self.prior_wash(None, local(2025, 11, 1, 8))
        self.prior_wash(None, local(2025, 11, 2, 23))
        self.prior_wash(None, local(2025, 11, 3, 0))

        response = self.client.get("/api/v1/washes/", {"from": "2025-11-01", "to": "2025-11-02"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["count"], 2)

        invalid = self.client.get("/api/v1/washes/", {"from": "yesterday"})
        self.assertEqual(invalid.status_code, 400)

    def test_receipt_includes_business_details(self):
        self.auth("manager", "manager123")
        wash = self.prior_wash(None, local(2025, 11, 2), receipt_no="SH1234542", vehicle_reg="KDA123A")

        response = self.client.get(f"/api/v1/washes/{wash.id}/receipt/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["business"]["name"], "Shynny Autowash")
        self.assertEqual(response.data["business"]["currency"], "KES")
        self.assertEqual(response.data["receipt_no"], "SH1234542")
        self.assertEqual(response.data["amount"], "800.00")
        self.assertEqual(response.data["service"], "Full Wash")
