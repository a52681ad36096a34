"""
어댑터 레이어

외부 리소스(DB) 연동.
"""
