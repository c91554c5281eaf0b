"""Tests for report module.

Test Files and Coverage:
========================

| Test File              | Test Classes          | Tested Constructs                    | Tested Functionalities         |
|------------------------|-----------------------|--------------------------------------|--------------------------------|
| test_saved_items.py    | SavedItemsReportTest  | SavedItemsReport, SavedFile/Directory| Node variants, XML write/read  |
"""
