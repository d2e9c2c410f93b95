import datetime
from decimal import Decimal
from unittest import mock
from django.test import TestCase, override_settings
from django.urls import reverse
from ..models import Bill, ChartOfAccount, JournalEntry, Payment
from .helpers import BooksMixin


class PayableApiTests(BooksMixin, TestCase):

    def bill_payload(self, **overrides):
        payload = {
            "vendorId": self.vendor.pk,
            "billDate": "2024-01-15",
            "dueDate": "2024-02-14T00:00:00.000Z",
            "reference": "PO-118",
            "items": [
                {"description": "A4 paper", "quantity": 2, "unitPrice": 100,
                 "accountId": self.supplies.pk},
                {"description": "Electricity", "quantity": 1, "unitPrice": 50,
                 "accountId": self.utilities.pk},
            ],
        }
        payload.update(overrides)
        return payload

    def create_bill(self, **overrides):
        return self.client.post(
            reverse("finance_core:payable"),
            self.bill_payload(**overrides),
            content_type="application/json",
        )

    """ Success tests """

    def test_create_bill(self):
        response = self.create_bill()

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["bill"]["billNumber"], "AP-202401-001")
        self.assertEqual(body["bill"]["totalAmount"], 250.0)
        self.assertEqual(body["bill"]["status"], "PAID")
        self.assertEqual(body["bill"]["vendorName"], "Paper Co")
        self.assertEqual(len(body["bill"]["items"]), 2)

    def test_list_bills_with_summary(self):
        self.create_bill()

        response = self.client.get(reverse("finance_core:payable"), {"vendorId": self.vendor.pk})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["pagination"]["totalCount"], 1)
        self.assertEqual(body["summary"]["totalBilled"], 250.0)
        self.assertEqual(body["summary"]["vendorCount"], 1)
        self.assertEqual(
            set(body["ageAnalysis"]),
            {"current", "days1To30", "days31To60", "days61To90", "over90"},
        )

    def test_get_single_bill(self):
        bill_id = self.create_bill().json()["bill"]["id"]

        by_query = self.client.get(reverse("finance_core:payable"), {"id": bill_id})
        by_path = self.client.get(reverse("finance_core:bill-detail", args=[bill_id]))

        self.assertEqual(by_query.json()["id"], bill_id)
        self.assertEqual(by_path.json()["billNumber"], "AP-202401-001")

    @override_settings(FINANCE_AUTO_SETTLE_ON_CREATE=False)
    def test_record_payment(self):
        bill_id = self.create_bill().json()["bill"]["id"]

        response = self.client.post(
            reverse("finance_core:bill-payment", args=[bill_id]),
            {"amount": 100, "paymentDate": "2024-01-20", "paymentMethod": "CASH"},
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["payment"]["amount"], 100.0)
        self.assertEqual(body["bill"]["status"], "PARTIAL")
        self.assertEqual(body["bill"]["remainingAmount"], 150.0)

    @override_settings(FINANCE_AUTO_SETTLE_ON_CREATE=False)
    def test_put_payment_amount(self):
        bill_id = self.create_bill().json()["bill"]["id"]

        response = self.client.put(
            reverse("finance_core:payable"),
            {"id": bill_id, "paymentAmount": 250, "paymentDate": "2024-01-20",
             "paymentMethod": "BANK_TRANSFER"},
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "PAID")

    @override_settings(FINANCE_AUTO_SETTLE_ON_CREATE=False)
    def test_cancel_bill(self):
        bill_id = self.create_bill().json()["bill"]["id"]

        response = self.client.delete(
            reverse("finance_core:bill-detail", args=[bill_id]),
            {"cancelDate": "2024-01-16"},
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["bill"]["status"], "CANCELLED")

    @override_settings(FINANCE_AUTO_SETTLE_ON_CREATE=False)
    def test_edit_bill(self):
        bill_id = self.create_bill().json()["bill"]["id"]

        response = self.client.put(
            reverse("finance_core:bill-detail", args=[bill_id]),
            self.bill_payload(
                description="Corrected quantities",
                items=[{"description": "A4 paper", "quantity": 3, "unitPrice": 100,
                        "accountId": self.supplies.pk}],
            ),
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["message"], "Bill updated successfully")
        self.assertEqual(body["bill"]["totalAmount"], 300.0)
        self.assertEqual(len(body["bill"]["items"]), 1)
        self.assertTrue(
            JournalEntry.objects.filter(source_type="bill_adjustment", source_id=bill_id).exists()
        )

    def test_edit_paid_bill_is_rejected(self):
        bill_id = self.create_bill().json()["bill"]["id"]

        response = self.client.put(
            reverse("finance_core:bill-detail", args=[bill_id]),
            self.bill_payload(),
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Invalid bill status")

    def test_edit_needs_items(self):
        bill_id = self.create_bill().json()["bill"]["id"]

        response = self.client.put(
            reverse("finance_core:bill-detail", args=[bill_id]),
            self.bill_payload(items=[]),
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertIn("items", response.json()["details"])

    def test_edit_unknown_bill(self):
        response = self.client.put(
            reverse("finance_core:bill-detail", args=[999999]),
            self.bill_payload(),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 404)

    """ Failure tests """

    def test_missing_fields(self):
        response = self.create_bill(vendorId=None, items=[])

        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertEqual(body["error"], "Validation error")
        self.assertIn("vendor_id", body["details"])
        self.assertFalse(Bill.objects.exists())

    def test_invalid_item_reports_row(self):
        payload_items = self.bill_payload()["items"]
        payload_items[1]["quantity"] = "lots"

        response = self.create_bill(items=payload_items)

        self.assertEqual(response.status_code, 400)
        self.assertIn("items[1].quantity", response.json()["details"])

    def test_due_before_bill_date(self):
        response = self.create_bill(dueDate="2024-01-01")
        self.assertEqual(response.status_code, 400)

    def test_invalid_json(self):
        response = self.client.post(
            reverse("finance_core:payable"), "{not json", content_type="application/json"
        )
        self.assertEqual(response.status_code, 400)

    def test_duplicate_bill_number(self):
        self.create_bill(billNumber="INV-1")
        response = self.create_bill(billNumber="INV-1")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Bill number already exists")

    def test_unknown_vendor(self):
        response = self.create_bill(vendorId=999999)
        self.assertEqual(response.status_code, 404)

    def test_no_open_period_is_a_server_error(self):
        response = self.create_bill(billDate="2023-06-01", dueDate="2023-07-01")

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["error"], "No open financial period")
        self.assertFalse(Bill.objects.exists())

    def test_missing_ap_account_is_a_server_error(self):
        ChartOfAccount.objects.filter(pk=self.ap.pk).update(is_active=False)

        response = self.create_bill()

        self.assertEqual(response.status_code, 500)
        self.assertFalse(JournalEntry.objects.exists())

    @override_settings(FINANCE_AUTO_SETTLE_ON_CREATE=False)
    def test_overpayment(self):
        bill_id = self.create_bill().json()["bill"]["id"]

        response = self.client.post(
            reverse("finance_core:bill-payment", args=[bill_id]),
            {"amount": 300, "paymentDate": "2024-01-20", "paymentMethod": "CASH"},
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["details"], {"remainingAmount": 250.0})
        self.assertFalse(Payment.objects.exists())

    def test_payment_on_unknown_bill(self):
        response = self.client.post(
            reverse("finance_core:bill-payment", args=[999999]),
            {"amount": 10, "paymentDate": "2024-01-20", "paymentMethod": "CASH"},
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 404)

    def test_put_payment_needs_a_numeric_bill_id(self):
        body = {"paymentAmount": 10, "paymentDate": "2024-01-20", "paymentMethod": "CASH"}

        for bill_id in ("abc", None, 0):
            response = self.client.put(
                reverse("finance_core:payable"),
                {**body, "id": bill_id},
                content_type="application/json",
            )
            self.assertEqual(response.status_code, 400, bill_id)
            self.assertEqual(response.json()["message"], "Bill ID is required")
        self.assertFalse(Payment.objects.exists())

    def test_method_not_allowed(self):
        response = self.client.patch(reverse("finance_core:payable"))
        self.assertEqual(response.status_code, 405)

    def test_unexpected_error_is_reported(self):
        with mock.patch(
            "finance_core.services.payable_summary", side_effect=RuntimeError("boom")
        ):
            response = self.client.get(reverse("finance_core:payable"))

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["error"], "Failed to process payable request")


class MasterDataApiTests(BooksMixin, TestCase):

    def test_vendor_list_and_create(self):
        Vendor = self.vendor.__class__
        Vendor.objects.create(name="Old Supplier", status="INACTIVE")

        names = [v["name"] for v in self.client.get(reverse("finance_core:vendors")).json()]
        self.assertEqual(names, ["Paper Co"])

        response = self.client.post(
            reverse("finance_core:vendors"),
            {"name": "Ink Ltd", "contactName": "Sari", "email": "sari@ink.example.com",
             "phone": "021-555", "address": "Jakarta"},
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["contactName"], "Sari")

    def test_vendor_requires_contact_details(self):
        response = self.client.post(
            reverse("finance_core:vendors"), {"name": "Ink Ltd"}, content_type="application/json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("email", response.json()["details"])

    def test_account_crud(self):
        url = reverse("finance_core:chart-of-accounts")

        created = self.client.post(
            url, {"code": "5300", "name": "Rent", "type": "EXPENSE"},
            content_type="application/json",
        )
        self.assertEqual(created.status_code, 201)
        account_id = created.json()["id"]

        duplicate = self.client.post(
            url, {"code": "5300", "name": "Rent again", "type": "EXPENSE"},
            content_type="application/json",
        )
        self.assertEqual(duplicate.status_code, 400)

        updated = self.client.put(
            f"{url}?id={account_id}", {"name": "Office rent"}, content_type="application/json"
        )
        self.assertEqual(updated.json()["name"], "Office rent")
        self.assertEqual(updated.json()["code"], "5300")

        listing = self.client.get(url, {"type": "EXPENSE", "search": "rent"}).json()
        self.assertEqual([a["code"] for a in listing["accounts"]], ["5300"])

        deleted = self.client.delete(f"{url}?id={account_id}")
        self.assertEqual(deleted.json(), {"success": True})

    def test_account_in_use_cannot_be_deleted(self):
        self.client.post(
            reverse("finance_core:payable"),
            {"vendorId": self.vendor.pk, "billDate": "2024-01-15", "dueDate": "2024-02-14",
             "items": [{"quantity": 1, "unitPrice": 10, "accountId": self.supplies.pk}]},
            content_type="application/json",
        )

        response = self.client.delete(
            f"{reverse('finance_core:chart-of-accounts')}?id={self.supplies.pk}"
        )
        self.assertEqual(response.status_code, 400)
        self.assertTrue(ChartOfAccount.objects.filter(pk=self.supplies.pk).exists())

    def test_periods(self):
        url = reverse("finance_core:periods")

        created = self.client.post(
            url,
            {"name": "2024-02", "startDate": "2024-02-01", "endDate": "2024-02-29",
             "type": "MONTHLY", "year": 2024, "quarter": 1, "month": 2},
            content_type="application/json",
        )
        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.json()["status"], "OPEN")

        overlap = self.client.post(
            url,
            {"name": "2024-01b", "startDate": "2024-01-15", "endDate": "2024-02-10",
             "type": "MONTHLY", "year": 2024},
            content_type="application/json",
        )
        self.assertEqual(overlap.status_code, 400)

        period_id = created.json()["id"]
        detail = reverse("finance_core:period-detail", args=[period_id])
        patched = self.client.patch(detail, {"status": "CLOSED"}, content_type="application/json")
        self.assertEqual(patched.json()["status"], "CLOSED")

        self.assertEqual(len(self.client.get(url, {"status": "CLOSED"}).json()), 1)
        self.assertEqual(self.client.delete(detail).status_code, 200)
        self.assertEqual(self.client.get(detail).status_code, 404)


class LedgerApiTests(BooksMixin, TestCase):

    def entry_payload(self, credit=100):
        return {
            "date": "2024-01-10",
            "periodId": self.period.pk,
            "description": "Cash purchase",
            "items": [
                {"accountId": self.supplies.pk, "debit": 100},
                {"accountId": self.cash.pk, "credit": credit},
            ],
        }

    def test_create_and_post_journal_entry(self):
        created = self.client.post(
            reverse("finance_core:journal-entries"), self.entry_payload(),
            content_type="application/json",
        )
        self.assertEqual(created.status_code, 201)
        entry = created.json()
        self.assertEqual(entry["status"], "DRAFT")

        posted = self.client.post(
            reverse("finance_core:post-journal-entry"), {"journalEntryId": entry["id"]},
            content_type="application/json",
        )
        self.assertEqual(posted.status_code, 200)
        self.assertEqual(posted.json()["entry"]["status"], "POSTED")

        listing = self.client.get(reverse("finance_core:journal-entries"), {"status": "POSTED"})
        self.assertEqual(listing.json()["pagination"]["totalCount"], 1)

    def test_unbalanced_entry(self):
        response = self.client.post(
            reverse("finance_core:journal-entries"), self.entry_payload(credit=90),
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["details"]["difference"], 10.0)

    def test_post_requires_id(self):
        response = self.client.post(
            reverse("finance_core:post-journal-entry"), {}, content_type="application/json"
        )
        self.assertEqual(response.status_code, 400)

    def test_trial_balance(self):
        self.client.post(
            reverse("finance_core:payable"),
            {"vendorId": self.vendor.pk, "billDate": "2024-01-15", "dueDate": "2024-02-14",
             "items": [{"quantity": 3, "unitPrice": "33.335", "accountId": self.supplies.pk}]},
            content_type="application/json",
        )

        response = self.client.get(
            reverse("finance_core:trial-balance"), {"periodId": self.period.pk}
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["periodName"], "2024-01")
        self.assertEqual(body["asOfDate"], "2024-01-31")
        self.assertTrue(body["totals"]["isBalanced"])
        self.assertEqual(body["totals"]["debit"], 100.01)

    def test_trial_balance_needs_a_date(self):
        response = self.client.get(reverse("finance_core:trial-balance"))
        self.assertEqual(response.status_code, 400)

    def income_statement(self, **params):
        return self.client.get(reverse("finance_core:income-statement"), params)

    def test_income_statement_for_a_period(self):
        sales = ChartOfAccount.objects.create(code="4000", name="Sales", type="REVENUE")
        created = self.client.post(
            reverse("finance_core:journal-entries"),
            {"date": "2024-01-12", "periodId": self.period.pk, "description": "Cash sale",
             "items": [{"accountId": self.cash.pk, "debit": 500},
                       {"accountId": sales.pk, "credit": 500}]},
            content_type="application/json",
        )
        self.client.post(
            reverse("finance_core:post-journal-entry"),
            {"journalEntryId": created.json()["id"]},
            content_type="application/json",
        )
        self.client.post(
            reverse("finance_core:payable"),
            {"vendorId": self.vendor.pk, "billDate": "2024-01-15", "dueDate": "2024-02-14",
             "items": [{"quantity": 1, "unitPrice": 120, "accountId": self.supplies.pk}]},
            content_type="application/json",
        )

        response = self.income_statement(periodId=self.period.pk, compareToPrevious="true")

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["periodName"], "2024-01")
        self.assertEqual((body["startDate"], body["endDate"]), ("2024-01-01", "2024-01-31"))
        self.assertEqual(body["totalRevenue"], 500.0)
        self.assertEqual(body["totalExpenses"], 120.0)
        self.assertEqual(body["netIncome"], 380.0)
        self.assertEqual(body["revenues"][0]["code"], "4000")
        self.assertEqual(body["previousPeriod"]["netIncome"], 0.0)

    def test_income_statement_for_a_date_range(self):
        response = self.income_statement(startDate="2024-01-01", endDate="2024-01-31")

        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.json()["previousPeriod"])
        self.assertNotIn("periodName", response.json())

    def test_income_statement_needs_dates_or_period(self):
        self.assertEqual(self.income_statement().status_code, 400)
        self.assertEqual(self.income_statement(startDate="2024-01-01").status_code, 400)
        self.assertEqual(
            self.income_statement(startDate="2024-02-01", endDate="2024-01-01").status_code, 400
        )

    def test_income_statement_unknown_period(self):
        self.assertEqual(self.income_statement(periodId=999999).status_code, 404)
