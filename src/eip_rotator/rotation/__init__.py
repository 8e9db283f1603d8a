"""
EIP rotation job body.

Components:
- rotator.py: the rotation sequence over the EipApi port
- ucloud_api.py: EipApi / RegionDirectory backed by the UCloud SDK
"""
