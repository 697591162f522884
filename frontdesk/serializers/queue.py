from rest_framework import serializers


class QueueActionSerializer(serializers.Serializer):
    couponNumber = serializers.IntegerField(min_value=1)
