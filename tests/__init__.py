"""Tests for hitsave.

Test Files and Coverage:
========================

| Test File          | Test Classes   | Tested Constructs                                   | Tested Functionalities              |
|--------------------|----------------|-----------------------------------------------------|-------------------------------------|
| test_naming.py     | NamingTest     | unique_file_name(), unique_directory_path()         | Suffixes, set names                 |
| test_case.py       | CaseTest       | Case                                                | Output path settings, end to end    |
| test_cli.py        | CliTest        | hitsave_main()                                      | ingest/tag/save commands, exit code |
"""
