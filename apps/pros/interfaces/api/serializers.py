from __future__ import annotations

from rest_framework import serializers


class ModerateProSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
