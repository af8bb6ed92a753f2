"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the bonding-curve token.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. test_supply_conservation.py - Balances always sum to total supply
2. test_operation_atomicity.py - Failed operations leave no trace
3. test_price_monotonicity.py - Price never falls while supply is positive
4. test_backing_sufficiency.py - Holdings always cover supply at the current price
5. test_tax_rule.py - Exclusion and the burn/collector split

These tests use hypothesis for property-based testing.
"""
