"""
Financial summary extraction across the label layouts seen in ICDC prints.
"""

from decimal import Decimal

from icdc_parser.services.financials import (
    FinancialDraft,
    collect_amounts,
    extract_financials,
)

from .samples import SAME_LINE_FINANCIALS

# Labels lost entirely; only the arithmetic ties the figures together
UNLABELLED_SUMMARY = [
    "TELANGANA STATE BEVERAGES CORPORATION LIMITED",
    "ICDC Number: ICDC050625012345",
    "Invoice Date: 06-Jun-2025",
    "Particulars",
    "1 5016 (12) KING FISHER PREMIUM LAGER BEER Beer G 12 / 650 ml 100 0",
    "Total Cases 100",
    "Signature",
    "Authorised Signatory",
    "Page 1 of 1",
    "24,13,858.92",
    "1,52,598.60",
    "25,66,457.52",
    "2,41,386.00",
    "1,91,760.00",
    "15,162.00",
]


class TestLabelledLayouts:

    def test_same_line(self):
        debug = {}
        summary = extract_financials(SAME_LINE_FINANCIALS, _debug=debug)

        assert summary.invoice_value == Decimal("1309438.00")
        assert summary.mrp_rounding_off == Decimal("75794.40")
        assert summary.net_invoice_value == Decimal("1385232.40")
        assert summary.retail_excise_turnover_tax == Decimal("130944.00")
        assert summary.special_excise_cess == Decimal("191760.00")
        assert summary.tcs == Decimal("15162.00")
        assert set(debug['financial_sources'].values()) == {'same_line'}

    def test_total_excludes_net_invoice_value(self):
        summary = extract_financials(SAME_LINE_FINANCIALS)

        assert summary.total_amount == Decimal("1723098.40"), \
            f"Expected invoice + mrp + turnover + cess + tcs, got {summary.total_amount}"

    def test_net_label_does_not_fill_invoice_value(self):
        summary = extract_financials(["Net Invoice Value:13,85,232.40"])

        assert summary.net_invoice_value == Decimal("1385232.40")
        assert summary.invoice_value == Decimal("0.00")

    def test_fragmented_block(self):
        lines = [
            "Invoice",
            "Value:",
            "MRP",
            "Rounding",
            "Off:",
            "Net Invoice Value:",
            "13,09,438.00",
            "75,794.40",
            "13,85,232.40",
        ]
        debug = {}
        summary = extract_financials(lines, _debug=debug)

        assert summary.invoice_value == Decimal("1309438.00")
        assert summary.mrp_rounding_off == Decimal("75794.40")
        assert summary.net_invoice_value == Decimal("1385232.40")
        assert debug['financial_sources']['invoice_value'] == 'block'

    def test_whole_line_labels_without_fragments(self):
        lines = [
            "Invoice Value:",
            "MRP Rounding Off:",
            "Net Invoice Value:",
            "13,09,438.00",
            "75,794.40",
            "13,85,232.40",
        ]
        debug = {}
        summary = extract_financials(lines, _debug=debug)

        assert summary.invoice_value == Decimal("1309438.00")
        assert summary.mrp_rounding_off == Decimal("75794.40")
        assert summary.net_invoice_value == Decimal("1385232.40")
        assert debug['financial_sources']['mrp_rounding_off'] == 'block_fallback'

    def test_split_line(self):
        lines = [
            "Retail Shop Excise Turnover Tax:",
            "1,30,944.00",
            "Special Excise Cess:",
            "1,91,760.00",
            "TCS:",
            "15,162.00",
        ]
        summary = extract_financials(lines)

        assert summary.retail_excise_turnover_tax == Decimal("130944.00")
        assert summary.special_excise_cess == Decimal("191760.00")
        assert summary.tcs == Decimal("15162.00")

    def test_interleaved(self):
        lines = [
            "Invoice",
            "Value:",
            "24,13,858.92",
            "MRP",
            "Rounding",
            "Off:",
            "Net",
            "Invoice",
            "Value:",
            "1,52,598.60",
            "25,66,457.52",
        ]
        debug = {}
        summary = extract_financials(lines, _debug=debug)

        assert summary.invoice_value == Decimal("2413858.92")
        assert summary.mrp_rounding_off == Decimal("152598.60")
        assert summary.net_invoice_value == Decimal("2566457.52")
        assert debug['financial_sources']['net_invoice_value'] == 'interleaved'

    def test_mrp_between_off_and_net(self):
        lines = [
            "Invoice Value:13,09,438.00",
            "Rounding Off:",
            "75,794.40",
            "Net Invoice Value:13,85,232.40",
        ]
        debug = {}
        summary = extract_financials(lines, _debug=debug)

        assert summary.mrp_rounding_off == Decimal("75794.40")
        assert debug['financial_sources']['mrp_rounding_off'] == 'interleaved'

    def test_first_method_wins(self):
        lines = SAME_LINE_FINANCIALS + ["TCS:", "99,999.00"]
        summary = extract_financials(lines)

        assert summary.tcs == Decimal("15162.00")

    def test_retail_shop_excise_tax_not_in_total(self):
        lines = ["Retail Shop Excise Tax:4000"] + SAME_LINE_FINANCIALS
        summary = extract_financials(lines)

        assert summary.retail_shop_excise_tax == Decimal("4000.00")
        assert summary.total_amount == Decimal("1723098.40")

    def test_nothing_found_is_all_zero(self):
        summary = extract_financials(["no money here"])

        assert summary.invoice_value == Decimal("0.00")
        assert summary.total_amount == Decimal("0.00")


class TestPositionalReconciliation:

    def test_unlabelled_amounts_reconciled(self):
        debug = {}
        summary = extract_financials(UNLABELLED_SUMMARY, _debug=debug)

        assert summary.invoice_value == Decimal("2413858.92")
        assert summary.mrp_rounding_off == Decimal("152598.60")
        assert summary.net_invoice_value == Decimal("2566457.52")
        assert summary.retail_excise_turnover_tax == Decimal("241386.00")
        assert summary.special_excise_cess == Decimal("191760.00")
        assert summary.tcs == Decimal("15162.00")
        assert summary.total_amount == Decimal("3014765.52")
        assert set(debug['financial_sources'].values()) == {'reconciled'}

    def test_unrelated_amounts_fall_back_to_shape(self):
        lines = [
            "12,34,567.89",
            "3,21,000.00",
            "45,678.12",
            "7,654.32",
            "8,765.43",
        ]
        debug = {}
        summary = extract_financials(lines, _debug=debug)

        assert summary.invoice_value == Decimal("1234567.89")
        assert summary.special_excise_cess == Decimal("321000.00")
        assert summary.net_invoice_value == Decimal("0.00")
        assert summary.tcs == Decimal("0.00")
        assert debug['financial_sources'] == {
            'invoice_value': 'shape_fallback',
            'special_excise_cess': 'shape_fallback',
        }

    def test_too_few_amounts_left_alone(self):
        summary = extract_financials(["24,13,858.92", "1,52,598.60"])

        assert summary.invoice_value == Decimal("0.00")


class TestCollectAmounts:

    def test_overlapping_match_counted_once(self):
        amounts = collect_amounts(["24,13,858.92"])

        assert [a.value for a in amounts] == [Decimal("2413858.92")]
        assert amounts[0].pattern_name == 'large_amount'

    def test_round_flag_and_order(self):
        amounts = collect_amounts(["2,41,386.00 and 5,162.50"])

        assert [a.value for a in amounts] == [Decimal("241386.00"), Decimal("5162.50")]
        assert amounts[0].is_round
        assert not amounts[1].is_round
        assert amounts[1].pattern_name == 'small_amount'

    def test_oversized_amount_dropped(self):
        assert collect_amounts(["99,99,99,999.00"]) == []


def test_draft_first_writer_wins():
    draft = FinancialDraft()

    assert draft.offer('tcs', Decimal("10"), 'same_line')
    assert not draft.offer('tcs', Decimal("20"), 'split_line')
    assert draft.values['tcs'] == Decimal("10")
    assert draft.sources['tcs'] == 'same_line'
