import unittest
from datetime import date
from decimal import Decimal

from pydantic import ValidationError

from models.transaction import NormalizedTransaction, ParseOutcome


class TestNormalizedTransaction(unittest.TestCase):
    def test_amount_coerced_to_decimal(self):
        """Test that string and float amounts become Decimals."""
        tx = NormalizedTransaction(date=date(2024, 1, 15), description="Coffee", amount="-4.50")
        self.assertEqual(tx.amount, Decimal("-4.50"))
        self.assertIsInstance(tx.amount, Decimal)

        tx = NormalizedTransaction(date=date(2024, 1, 15), description="Coffee", amount=12.5, balance="100")
        self.assertEqual(tx.amount, Decimal("12.5"))
        self.assertEqual(tx.balance, Decimal("100"))

    def test_description_is_stripped_and_required(self):
        """Test description normalization."""
        tx = NormalizedTransaction(date=date(2024, 1, 15), description="  Coffee  ", amount=Decimal("1"))
        self.assertEqual(tx.description, "Coffee")

        with self.assertRaises(ValidationError):
            NormalizedTransaction(date=date(2024, 1, 15), description="   ", amount=Decimal("1"))

    def test_blank_category_is_none(self):
        tx = NormalizedTransaction(date=date(2024, 1, 15), description="Coffee", amount=Decimal("1"), category=" ")
        self.assertIsNone(tx.category)

    def test_invalid_amount_rejected(self):
        with self.assertRaises(ValidationError):
            NormalizedTransaction(date=date(2024, 1, 15), description="Coffee", amount="twelve")

    def test_equality_by_value(self):
        """Test transactions compare by value."""
        first = NormalizedTransaction(date=date(2024, 1, 15), description="Coffee", amount=Decimal("-4.50"))
        second = NormalizedTransaction(date=date(2024, 1, 15), description="Coffee", amount="-4.50")
        self.assertEqual(first, second)


class TestParseOutcome(unittest.TestCase):
    def setUp(self):
        """Set up test fixtures."""
        self.transaction = NormalizedTransaction(
            date=date(2024, 1, 15),
            description="Coffee",
            amount=Decimal("-4.50")
        )

    def test_failed_outcome(self):
        """Test the failed outcome constructor."""
        outcome = ParseOutcome.failed("Content is empty")
        self.assertFalse(outcome.success)
        self.assertEqual(outcome.transactions, [])
        self.assertEqual(outcome.skipped, 0)
        self.assertEqual(outcome.error, "Content is empty")
        self.assertIsNone(outcome.detected_format)

    def test_succeeded_outcome(self):
        """Test the succeeded outcome constructor."""
        outcome = ParseOutcome.succeeded([self.transaction], skipped=2, detected_format="Chase")
        self.assertTrue(outcome.success)
        self.assertIsNone(outcome.error)
        self.assertEqual(outcome.total_rows, 3)
        self.assertEqual(outcome.detected_format, "Chase")

    def test_success_cannot_carry_error(self):
        with self.assertRaises(ValidationError):
            ParseOutcome(success=True, error="boom")

    def test_failure_requires_error_and_no_transactions(self):
        """Test failure consistency rules."""
        with self.assertRaises(ValidationError):
            ParseOutcome(success=False)
        with self.assertRaises(ValidationError):
            ParseOutcome(success=False, error="boom", transactions=[self.transaction])

    def test_negative_skipped_rejected(self):
        with self.assertRaises(ValidationError):
            ParseOutcome(success=True, skipped=-1)

    def test_serializes_with_camel_case_alias(self):
        """Test serialization by alias."""
        outcome = ParseOutcome.succeeded([], detected_format="OFX")
        data = outcome.model_dump(by_alias=True)
        self.assertEqual(data["detectedFormat"], "OFX")


if __name__ == '__main__':
    unittest.main()
