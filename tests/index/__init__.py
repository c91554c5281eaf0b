"""Tests for index module.

Test Files and Coverage:
========================

| Test File             | Test Classes      | Tested Constructs              | Tested Functionalities                   |
|-----------------------|-------------------|--------------------------------|------------------------------------------|
| test_store.py         | IndexStoreTest    | IndexStore, SourceItem         | Items, children, paths, artifacts, dump  |
| test_find_case.py     | FindCaseTest      | find_case_for_path()           | Exact path, descendants, no case         |
| test_settings.py      | CaseSettingsTest  | CaseSettings                   | Dotted keys, defaults, missing file      |
"""
