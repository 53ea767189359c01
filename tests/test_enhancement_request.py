"""
Tests for EnhancementRequest.

Tests cover:
- Defaults and derived properties
- Validation
- Dictionary conversion
"""

import unittest

from HX_Libs.EnhancementLib.enhancement_request import EnhancementRequest


class TestEnhancementRequest(unittest.TestCase):
    """Test EnhancementRequest dataclass."""

    def test_defaults(self):
        request = EnhancementRequest()

        self.assertTrue(request.vividness)
        self.assertTrue(request.lsv)
        self.assertFalse(request.adapthisteq)
        self.assertFalse(request.retinex)
        self.assertEqual(request.retinex_methods, ())
        self.assertTrue(request.negative)
        self.assertTrue(request.blue)
        self.assertFalse(request.mask)
        self.assertEqual(request.mask_background, "lightBackground")

    def test_retinex_methods_become_tuple(self):
        request = EnhancementRequest(retinex=True, retinex_methods=["MSR-V"])
        self.assertEqual(request.retinex_methods, ("MSR-V",))
        hash(request)

    def test_derived_properties(self):
        request = EnhancementRequest(negative=True, blue=False, mask=True)

        self.assertEqual(request.postprocessing_count, 1)
        self.assertEqual(request.mask_runs, 2)
        self.assertEqual(EnhancementRequest().mask_runs, 1)

    def test_enabled_operators_in_declaration_order(self):
        request = EnhancementRequest(
            vividness=False, lsv=True, adapthisteq=True,
            retinex=True, retinex_methods=("MSR-V",),
        )
        self.assertEqual(request.enabled_operators(), ["LSV", "Adapthisteq", "Retinex"])

    def test_operator_enabled_unknown_name(self):
        self.assertFalse(EnhancementRequest().operator_enabled("Sharpen"))

    def test_validate_accepts_defaults(self):
        EnhancementRequest().validate()

    def test_validate_requires_an_operator(self):
        request = EnhancementRequest(vividness=False, lsv=False)

        with self.assertRaises(ValueError) as ctx:
            request.validate()

        self.assertIn("at least one enhancement method", str(ctx.exception))

    def test_validate_retinex_methods(self):
        with self.assertRaises(ValueError):
            EnhancementRequest(retinex=True).validate()
        with self.assertRaises(ValueError):
            EnhancementRequest(retinex=True, retinex_methods=("MSR-X",)).validate()
        with self.assertRaises(ValueError):
            EnhancementRequest(retinex=True, retinex_methods=("MSR-V", "MSR-V")).validate()

    def test_validate_mask_background(self):
        with self.assertRaises(ValueError):
            EnhancementRequest(mask=True, mask_background="grey").validate()

    def test_dict_round_trip(self):
        request = EnhancementRequest(
            adapthisteq=True, retinex=True, retinex_methods=("MSR-L", "MSRCP-V"),
            mask=True, mask_background="darkBackground", deshadow=True,
        )

        data = request.to_dict()
        restored = EnhancementRequest.from_dict(data)

        self.assertEqual(data["retinex_methods"], ["MSR-L", "MSRCP-V"])
        self.assertEqual(restored, request)

    def test_from_dict_ignores_unknown_keys(self):
        restored = EnhancementRequest.from_dict({"lsv": False, "progress_bar": True})
        self.assertFalse(restored.lsv)


if __name__ == "__main__":
    unittest.main()
