"""Tests for command implementation modules.

Test Files and Coverage:
========================

| Test File          | Test Classes      | Tested Constructs          | Tested Functionalities                         |
|--------------------|-------------------|----------------------------|------------------------------------------------|
| test_ingest.py     | IngestTest        | do_ingest()                | Identifiers, kinds, relations, re-ingest       |
| test_tag.py        | TagTest           | do_tag()                   | Artifacts, unknown paths                       |
| test_grouping.py   | GroupHitsTest     | group_hits()               | Set order, first description, missing names    |
| test_save.py       | SaveTest          | do_save(), SaveProcessor   | Files, directories, partial failures, reports  |
| test_digest.py     | DigestTest        | do_digest()                | MD5 digests, missing files                     |
"""
