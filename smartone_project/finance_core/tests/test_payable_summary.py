import datetime
from decimal import Decimal
from django.test import SimpleTestCase, TestCase
from ..models import Bill, Vendor
from ..services import payable_summary
from ..services.reporting import age_bucket

TODAY = datetime.date(2024, 6, 15)


class AgeBucketTests(SimpleTestCase):

    def test_bucket_bounds(self):
        self.assertEqual(age_bucket(-10), "current")
        self.assertEqual(age_bucket(0), "current")
        self.assertEqual(age_bucket(1), "days1To30")
        self.assertEqual(age_bucket(30), "days1To30")
        self.assertEqual(age_bucket(31), "days31To60")
        self.assertEqual(age_bucket(60), "days31To60")
        self.assertEqual(age_bucket(90), "days61To90")
        self.assertEqual(age_bucket(91), "over90")


class PayableSummaryTests(TestCase):

    def setUp(self):
        self.acme = Vendor.objects.create(name="Acme Supplies")
        self.zeta = Vendor.objects.create(name="Zeta Logistics")
        self.seq = 0

    def bill(self, vendor, total, paid="0", status=None, due_in=0, issue=None):
        self.seq += 1
        paid = Decimal(paid)
        total = Decimal(total)
        if status is None:
            status = "PAID" if paid == total else ("PARTIAL" if paid else "PENDING")
        return Bill.objects.create(
            bill_number=f"B-{self.seq:03d}",
            vendor=vendor,
            issue_date=issue or datetime.date(2024, 1, self.seq),
            due_date=TODAY + datetime.timedelta(days=due_in),
            total_amount=total,
            paid_amount=paid,
            status=status,
        )

    def test_totals_and_aging(self):
        self.bill(self.acme, "100", due_in=-10)  # 10 days overdue
        self.bill(self.acme, "200", paid="50", due_in=-45)  # 45 days overdue
        self.bill(self.zeta, "300", due_in=-120)  # over 90
        self.bill(self.zeta, "400", due_in=5)  # due soon
        self.bill(self.zeta, "500", due_in=60)  # not due soon
        self.bill(self.acme, "80", paid="80", due_in=-5)  # settled
        self.bill(self.acme, "999", status="CANCELLED", due_in=-5)

        result = payable_summary(today=TODAY)
        summary = result["summary"]

        self.assertEqual(summary["totalBilled"], Decimal("1580"))
        self.assertEqual(summary["totalPaid"], Decimal("130"))
        self.assertEqual(summary["totalOutstanding"], Decimal("1450"))
        self.assertEqual(summary["overdue"], Decimal("550"))
        self.assertEqual(summary["overdueCount"], 3)
        self.assertEqual(summary["dueSoon"], Decimal("400"))
        self.assertEqual(summary["dueSoonCount"], 1)
        self.assertEqual(summary["vendorCount"], 2)

        self.assertEqual(
            result["ageAnalysis"],
            {
                "current": Decimal("900"),
                "days1To30": Decimal("100"),
                "days31To60": Decimal("150"),
                "days61To90": Decimal("0"),
                "over90": Decimal("300"),
            },
        )
        # every outstanding cent lands in exactly one bucket
        self.assertEqual(sum(result["ageAnalysis"].values()), summary["totalOutstanding"])

    def test_bill_due_today_is_not_overdue(self):
        self.bill(self.acme, "100", due_in=0)

        summary = payable_summary(today=TODAY)["summary"]
        self.assertEqual(summary["overdueCount"], 0)
        self.assertEqual(summary["dueSoonCount"], 1)

    def test_top_vendors_sorted_by_outstanding(self):
        self.bill(self.acme, "100")
        self.bill(self.acme, "150")
        self.bill(self.zeta, "400")
        settled = Vendor.objects.create(name="Settled Ltd")
        self.bill(settled, "75", paid="75")

        top = payable_summary(today=TODAY)["topVendors"]

        self.assertEqual([v["vendorName"] for v in top], ["Zeta Logistics", "Acme Supplies"])
        self.assertEqual(top[1]["outstanding"], Decimal("250"))
        self.assertEqual(top[1]["billCount"], 2)

    def test_top_vendors_capped_at_five(self):
        for n in range(7):
            vendor = Vendor.objects.create(name=f"Vendor {n}")
            self.bill(vendor, str(10 + n))

        top = payable_summary(today=TODAY)["topVendors"]
        self.assertEqual(len(top), 5)
        self.assertEqual(top[0]["vendorName"], "Vendor 6")

    def test_filters_and_pagination(self):
        for _ in range(12):
            self.bill(self.acme, "10")
        self.bill(self.zeta, "10")

        result = payable_summary(vendor_id=self.acme.pk, page=2, page_size=5, today=TODAY)

        self.assertEqual(
            result["pagination"],
            {"totalCount": 12, "totalPages": 3, "currentPage": 2, "pageSize": 5},
        )
        self.assertEqual(len(result["bills"]), 5)
        self.assertEqual(result["summary"]["totalBilled"], Decimal("120"))

    def test_search_matches_vendor_name(self):
        self.bill(self.acme, "10")
        self.bill(self.zeta, "20")

        result = payable_summary(search="zeta", today=TODAY)
        self.assertEqual([b.vendor_id for b in result["bills"]], [self.zeta.pk])

    def test_empty_ledger(self):
        result = payable_summary(today=TODAY)
        self.assertEqual(result["pagination"]["totalPages"], 0)
        self.assertEqual(result["topVendors"], [])
        self.assertEqual(result["summary"]["totalOutstanding"], Decimal("0"))

    def test_summary_agrees_with_bill_queryset_helpers(self):
        self.bill(self.acme, "100", due_in=-3)
        self.bill(self.acme, "60", paid="20", due_in=10)
        self.bill(self.zeta, "70", due_in=40)
        self.bill(self.zeta, "90", status="CANCELLED", due_in=-3)

        summary = payable_summary(today=TODAY)["summary"]

        overdue = Bill.objects.overdue(TODAY)
        due_soon = Bill.objects.due_between(TODAY, TODAY + datetime.timedelta(days=30))
        self.assertEqual(summary["overdueCount"], overdue.count())
        self.assertEqual(summary["overdue"], sum(b.outstanding_amount for b in overdue))
        self.assertEqual(summary["dueSoonCount"], due_soon.count())
        self.assertEqual(summary["dueSoon"], Decimal("40"))
        self.assertEqual(
            summary["totalOutstanding"],
            sum(b.outstanding_amount for b in Bill.objects.outstanding()),
        )
