# api/serializers.py
from rest_framework import serializers

from accounts.models import District, Division, Upazila
from bloodrequests.models import BloodRequest, RequestStatus
from donors.models import DonorApplication, DonorResponse, ResponseStatus


class RequesterSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    username = serializers.CharField(read_only=True)
    name = serializers.CharField(source='display_name', read_only=True)


class BloodRequestSerializer(serializers.ModelSerializer):
    """Read shape of a request, shared by the feed and the detail view."""
    requester = RequesterSerializer(source='user', read_only=True)
    division = serializers.CharField(source='division.name', read_only=True, default=None)
    district = serializers.CharField(source='district.name', read_only=True, default=None)
    upazila = serializers.CharField(source='upazila.name', read_only=True, default=None)

    class Meta:
        model = BloodRequest
        fields = [
            'id',
            'requester',
            'patient_name',
            'gender',
            'required_date',
            'blood_group',
            'amount_needed',
            'hospital_name',
            'urgency_status',
            'smoker_preference',
            'reason',
            'location',
            'latitude',
            'longitude',
            'division',
            'district',
            'upazila',
            'status',
            'upvote_count',
            'donors_assigned',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class BloodRequestWriteSerializer(serializers.ModelSerializer):
    """Fields a requester may set on create or edit."""
    division = serializers.PrimaryKeyRelatedField(queryset=Division.objects.all(), required=False, allow_null=True)
    district = serializers.PrimaryKeyRelatedField(queryset=District.objects.all(), required=False, allow_null=True)
    upazila = serializers.PrimaryKeyRelatedField(queryset=Upazila.objects.all(), required=False, allow_null=True)
    address_label = serializers.CharField(required=False, allow_blank=True, write_only=True)

    class Meta:
        model = BloodRequest
        fields = [
            'patient_name',
            'gender',
            'required_date',
            'blood_group',
            'amount_needed',
            'hospital_name',
            'urgency_status',
            'smoker_preference',
            'reason',
            'location',
            'latitude',
            'longitude',
            'division',
            'district',
            'upazila',
            'address_label',
        ]
        extra_kwargs = {
            'location': {'required': False},
            'reason': {'required': False},
        }

    def validate(self, attrs):
        latitude = attrs.get('latitude', getattr(self.instance, 'latitude', None))
        longitude = attrs.get('longitude', getattr(self.instance, 'longitude', None))
        if (latitude is None) != (longitude is None):
            raise serializers.ValidationError('Latitude and longitude must be given together.')
        if latitude is not None and not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
            raise serializers.ValidationError('Coordinates are out of range.')

        upazila = attrs.get('upazila')
        district = attrs.get('district')
        division = attrs.get('division')
        if upazila and district and upazila.district_id != district.id:
            raise serializers.ValidationError({'upazila': 'Upazila is not in the selected district.'})
        if district and division and district.division_id != division.id:
            raise serializers.ValidationError({'district': 'District is not in the selected division.'})
        return attrs


class FeedItemSerializer(serializers.Serializer):
    request = BloodRequestSerializer(source='blood_request')
    score = serializers.FloatField()
    has_upvoted = serializers.BooleanField()
    has_responded = serializers.BooleanField()
    is_owner = serializers.BooleanField()
    viewer_is_approved_donor = serializers.BooleanField()
    viewer_can_respond = serializers.BooleanField()
    viewer_blocked_reason = serializers.CharField(allow_null=True)
    viewer_response_status = serializers.CharField(allow_null=True)


class FeedPageSerializer(serializers.Serializer):
    items = FeedItemSerializer(many=True)
    has_more = serializers.BooleanField()
    next_cursor = serializers.IntegerField(allow_null=True)
    new_since_cursor = serializers.IntegerField()


class EligibilitySerializer(serializers.Serializer):
    eligible = serializers.BooleanField()
    code = serializers.CharField(allow_null=True)
    reason = serializers.CharField(allow_null=True)
    resume_date = serializers.DateField(allow_null=True)


class StatusChangeSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=RequestStatus.choices)


class DonorResponseSerializer(serializers.ModelSerializer):
    donor = RequesterSerializer(read_only=True)
    blood_group = serializers.CharField(source='donor.blood_group', read_only=True)
    phone = serializers.SerializerMethodField()

    class Meta:
        model = DonorResponse
        fields = ['id', 'donor', 'blood_group', 'phone', 'blood_request', 'status',
                  'accepted_at', 'created_at', 'updated_at']
        read_only_fields = fields

    def get_phone(self, obj):
        # Phone is shared only once accepted or when the donor consented
        application = getattr(obj.donor, 'donor_application', None)
        consented = application is not None and application.consent_to_share_phone
        if obj.status == ResponseStatus.ACCEPTED or consented:
            return obj.donor.phone or None
        return None


class DonorApplicationSerializer(serializers.ModelSerializer):
    """The signed-in user's own application. Status is set by moderators only."""
    medical_conditions = serializers.CharField(max_length=2000, required=False, allow_blank=True)

    class Meta:
        model = DonorApplication
        fields = [
            'id',
            'status',
            'date_of_birth',
            'has_donated_before',
            'last_donation_date',
            'medical_conditions',
            'ready_for_urgent_donation',
            'consent_to_share_phone',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'status', 'created_at', 'updated_at']


class TransitionResultSerializer(serializers.Serializer):
    response = DonorResponseSerializer()
    accepted_count = serializers.IntegerField()
    amount_needed = serializers.DecimalField(max_digits=4, decimal_places=1)
    request_status = serializers.CharField()
