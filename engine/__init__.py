"""
장부 엔진

core Ledger 저장소 위에 구축된 전기, 마감, 감가상각 엔진.
"""
