"""
Unit tests for NotificationService and the funding event simulator
"""

import random
import re
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from core.events import EventBus
from core.exceptions import DeliveryError
from models.base import ChannelType, EventCategory, FundingEventType, JobType, NotificationType
from models.funding_event import FundingEvent
from notifications.service import NotificationService, format_amount
from notifications.simulator import FundingEventSimulator
from schemas.notifications import (
    NotificationChannel,
    NotificationCreate,
    NotificationRule,
    RelatedTo,
    RuleConditions,
)
from schemas.status import RefreshEvent


def mock_deliverers():
    return {channel_type: Mock() for channel_type in ChannelType}


def acquisition_input(amount_text="$200M"):
    return NotificationCreate(
        title="Acquisition Alert",
        message=f"Globex was acquired for {amount_text}",
        type=NotificationType.WARNING,
        related_to=RelatedTo(type="company", id="globex")
    )


class TestInbox:
    """Test inbox operations"""
    
    def test_add_notification(self):
        service = NotificationService(deliverers=mock_deliverers())
        
        notification = service.add_notification({"title": "Hello", "message": "World"})
        
        assert notification.id.startswith("notification-")
        assert notification.read is False
        assert notification.created_at is not None
        assert service.get_notifications() == [notification]
    
    def test_newest_first(self):
        service = NotificationService(deliverers=mock_deliverers())
        
        first = service.add_notification({"title": "First"})
        second = service.add_notification({"title": "Second"})
        
        assert [n.id for n in service.get_notifications()] == [second.id, first.id]
    
    def test_mark_as_read(self):
        service = NotificationService(deliverers=mock_deliverers())
        first = service.add_notification({"title": "First"})
        service.add_notification({"title": "Second"})
        
        assert service.mark_as_read(first.id) is True
        assert service.get_notification(first.id).read is True
        assert [n.title for n in service.get_unread_notifications()] == ["Second"]
        assert first.read is False
    
    def test_mark_all_and_clear(self):
        service = NotificationService(deliverers=mock_deliverers())
        service.add_notification({"title": "First"})
        service.add_notification({"title": "Second"})
        
        service.mark_all_as_read()
        assert service.get_unread_notifications() == []
        assert len(service.get_notifications()) == 2
        
        service.clear_all_notifications()
        assert service.get_notifications() == []
    
    def test_delete(self):
        service = NotificationService(deliverers=mock_deliverers())
        notification = service.add_notification({"title": "First"})
        
        assert service.delete_notification(notification.id) is True
        assert service.delete_notification(notification.id) is False
        assert service.get_notifications() == []


class TestSubscribers:
    """Test inbox fan-out"""
    
    def test_one_callback_per_mutation(self):
        service = NotificationService(deliverers=mock_deliverers())
        snapshots = []
        service.subscribe(snapshots.append)
        
        first = service.add_notification({"title": "First"})
        assert len(snapshots) == 1
        
        second = service.add_notification({"title": "Second"})
        assert len(snapshots) == 2
        assert [n.id for n in snapshots[-1]] == [second.id, first.id]
        
        service.mark_as_read(first.id)
        assert len(snapshots) == 3
        assert [n.read for n in snapshots[-1]] == [False, True]
        
        service.delete_notification(second.id)
        assert len(snapshots) == 4
        assert [n.id for n in snapshots[-1]] == [first.id]
    
    def test_unknown_id_does_not_notify_mark_as_read(self):
        service = NotificationService(deliverers=mock_deliverers())
        listener = Mock()
        service.subscribe(listener)
        
        assert service.mark_as_read("notification-missing") is False
        listener.assert_not_called()
    
    def test_unsubscribe(self):
        service = NotificationService(deliverers=mock_deliverers())
        listener = Mock()
        unsubscribe = service.subscribe(listener)
        unsubscribe()
        
        service.add_notification({"title": "First"})
        
        listener.assert_not_called()
    
    def test_failing_listener_is_isolated(self):
        service = NotificationService(deliverers=mock_deliverers())
        after = Mock()
        service.subscribe(Mock(side_effect=RuntimeError("listener failure")))
        service.subscribe(after)
        
        notification = service.add_notification({"title": "First"})
        
        after.assert_called_once()
        assert service.get_notifications() == [notification]
    
    def test_listener_receives_a_copy(self):
        service = NotificationService(deliverers=mock_deliverers())
        service.subscribe(lambda inbox: inbox.clear())
        
        service.add_notification({"title": "First"})
        
        assert len(service.get_notifications()) == 1


class TestDelivery:
    """Test rule evaluation and delivery"""
    
    def test_delivers_only_to_enabled_channel(self):
        deliverers = mock_deliverers()
        service = NotificationService(
            rules=[NotificationRule(
                name="Major Acquisitions",
                event_type=EventCategory.ACQUISITION,
                conditions=RuleConditions(min_amount=100_000_000),
                channels=[ChannelType.IN_APP]
            )],
            channels=[
                NotificationChannel(type=ChannelType.EMAIL, config={"address": "a@example.com"}, enabled=False),
                NotificationChannel(type=ChannelType.IN_APP, enabled=True),
            ],
            deliverers=deliverers
        )
        
        notification = service.add_notification(acquisition_input("$200M"))
        
        deliverers[ChannelType.IN_APP].deliver.assert_called_once()
        deliverers[ChannelType.EMAIL].deliver.assert_not_called()
        records = service.get_deliveries(notification.id)
        assert [(r.channel_type, r.success) for r in records] == [(ChannelType.IN_APP, True)]
    
    def test_below_threshold_not_delivered(self):
        deliverers = mock_deliverers()
        service = NotificationService.with_defaults(deliverers=deliverers, watchlist=[])
        
        service.add_notification(acquisition_input("$50M"))
        
        deliverers[ChannelType.IN_APP].deliver.assert_not_called()
        deliverers[ChannelType.EMAIL].deliver.assert_not_called()
    
    def test_default_rules_route_large_funding_to_in_app_and_email(self):
        deliverers = mock_deliverers()
        service = NotificationService.with_defaults(deliverers=deliverers)
        
        notification = service.add_notification(NotificationCreate(
            title="New Series B Funding Round",
            message="TechVision secured $45M in Series B funding",
            related_to=RelatedTo(type="company", id="techvision")
        ))
        
        channel_types = [r.channel_type for r in service.get_deliveries(notification.id)]
        assert channel_types == [ChannelType.IN_APP, ChannelType.EMAIL]
        deliverers[ChannelType.MOBILE].deliver.assert_not_called()
    
    def test_delivery_failure_is_recorded_not_raised(self):
        deliverers = mock_deliverers()
        deliverers[ChannelType.EMAIL].deliver.side_effect = DeliveryError("smtp down")
        service = NotificationService.with_defaults(deliverers=deliverers)
        
        notification = service.add_notification(NotificationCreate(
            title="New Series A Funding Round",
            message="Acme secured $20M in Series A funding",
            related_to=RelatedTo(type="company", id="acme")
        ))
        
        records = {r.channel_type: r for r in service.get_deliveries(notification.id)}
        assert records[ChannelType.IN_APP].success is True
        assert records[ChannelType.EMAIL].success is False
        assert records[ChannelType.EMAIL].error == "smtp down"
        assert service.get_notifications() == [notification]
    
    def test_delivery_is_idempotent_per_channel(self):
        deliverers = mock_deliverers()
        service = NotificationService.with_defaults(deliverers=deliverers)
        notification = service.add_notification(NotificationCreate(
            title="New Series A Funding Round",
            message="Acme secured $20M in Series A funding",
            related_to=RelatedTo(type="company", id="acme")
        ))
        
        assert service.deliver(notification) == []
        assert deliverers[ChannelType.IN_APP].deliver.call_count == 1
    
    def test_default_email_deliverer_logs(self, caplog):
        service = NotificationService.with_defaults()
        
        with caplog.at_level("INFO", logger="notifications.channels"):
            service.add_notification(NotificationCreate(
                title="New Series A Funding Round",
                message="Acme secured $20M in Series A funding",
                related_to=RelatedTo(type="company", id="acme")
            ))
        
        assert "Would send email to user@example.com" in caplog.text


class TestRulesAndChannels:
    """Test rule and channel CRUD"""
    
    def test_save_rule_assigns_id(self):
        service = NotificationService()
        
        rule = service.save_rule(NotificationRule(name="All", channels=[ChannelType.IN_APP]))
        
        assert rule.id.startswith("rule-")
        assert service.get_rules() == [rule]
    
    def test_save_rule_replaces_by_id(self):
        service = NotificationService.with_defaults()
        
        updated = service.save_rule(service.get_rules()[0].model_copy(update={"enabled": False}))
        
        assert len(service.get_rules()) == 3
        assert next(r for r in service.get_rules() if r.id == updated.id).enabled is False
    
    def test_delete_rule(self):
        service = NotificationService.with_defaults()
        
        assert service.delete_rule("rule-1") is True
        assert service.delete_rule("rule-1") is False
        assert [r.id for r in service.get_rules()] == ["rule-2", "rule-3"]
    
    def test_channel_crud(self):
        service = NotificationService()
        
        channel = service.save_channel(NotificationChannel(type=ChannelType.MOBILE, config={"deviceToken": "t"}))
        assert channel.id.startswith("channel-")
        assert service.get_channels() == [channel]
        
        assert service.delete_channel(channel.id) is True
        assert service.get_channels() == []
    
    def test_defaults(self):
        service = NotificationService.with_defaults()
        
        assert [r.id for r in service.get_rules()] == ["rule-1", "rule-2", "rule-3"]
        channels = {c.type: c for c in service.get_channels()}
        assert channels[ChannelType.IN_APP].enabled is True
        assert channels[ChannelType.EMAIL].enabled is True
        assert channels[ChannelType.MOBILE].enabled is False


class TestEventIntake:
    """Test notifications created from bus events"""
    
    def test_refresh_event_for_api_job(self):
        bus = EventBus()
        service = NotificationService(deliverers=mock_deliverers())
        service.attach(bus)
        
        bus.publish(RefreshEvent(schedule_id="s1", job_type=JobType.API, job_id="crunchbase-api"))
        
        [notification] = service.get_notifications()
        assert notification.title == "Data Refresh Complete"
        assert notification.message == "New data has been fetched from external APIs"
        assert notification.related_to.type == "system"
        assert notification.related_to.id == "crunchbase-api"
    
    def test_refresh_event_for_scraper_job(self):
        service = NotificationService(deliverers=mock_deliverers())
        
        notification = service.handle_refresh_event(
            RefreshEvent(schedule_id="s2", job_type=JobType.SCRAPER, job_id="techcrunch-scraper")
        )
        
        assert notification.message == "New data has been fetched from web sources"
    
    def test_refresh_event_for_etl_job_is_ignored(self):
        service = NotificationService(deliverers=mock_deliverers())
        
        assert service.handle_refresh_event(RefreshEvent(schedule_id="s3", job_type=JobType.ETL)) is None
        assert service.get_notifications() == []
    
    def test_funding_event(self):
        service = NotificationService(deliverers=mock_deliverers())
        
        notification = service.handle_funding_event(FundingEvent(
            id="fr-3",
            company_id="initech",
            company_name="Initech",
            date=datetime(2025, 7, 3, tzinfo=timezone.utc),
            type=FundingEventType.SERIES_B,
            amount=45_000_000,
            investors=["Accel Partners"],
            source="Test API"
        ))
        
        assert notification.title == "New Series B Funding Round"
        assert notification.message == "Initech secured $45M in Series B funding led by Accel Partners"
        assert notification.event_type == EventCategory.FUNDING
        assert notification.amount == 45_000_000
        assert notification.related_to.id == "initech"
    
    def test_small_round_is_shown_in_thousands(self):
        service = NotificationService(deliverers=mock_deliverers())
        
        notification = service.handle_funding_event(FundingEvent(
            id="fr-9",
            company_id="tinyco",
            company_name="TinyCo",
            date=datetime(2025, 7, 3, tzinfo=timezone.utc),
            type=FundingEventType.SEED,
            amount=500_000,
            source="Test API"
        ))
        
        assert notification.message == "TinyCo secured $500K in Seed funding"
    
    def test_acquisition_event(self):
        service = NotificationService(deliverers=mock_deliverers())
        
        notification = service.handle_funding_event(FundingEvent(
            id="acq-1",
            company_name="Data Dynamics",
            date=datetime(2025, 7, 3, tzinfo=timezone.utc),
            type=FundingEventType.ACQUISITION,
            amount=980_000_000,
            source="Test API"
        ))
        
        assert notification.title == "Acquisition Alert"
        assert notification.message == "Data Dynamics was acquired for $980M"
        assert notification.event_type == EventCategory.ACQUISITION
        assert notification.related_to.id == "data_dynamics"
    
    def test_detach(self):
        bus = EventBus()
        service = NotificationService(deliverers=mock_deliverers())
        service.attach(bus)
        service.detach()
        
        bus.publish(RefreshEvent(schedule_id="s1", job_type=JobType.API))
        
        assert service.get_notifications() == []


class TestFormatting:
    
    @pytest.mark.parametrize("amount,expected", [
        (500_000, "$500K"),
        (5_000_000, "$5M"),
        (45_000_000, "$45M"),
        (1_200_000_000, "$1.2B"),
    ])
    def test_format_amount(self, amount, expected):
        assert format_amount(amount) == expected


class TestSimulator:
    """Test the sample notification generator"""
    
    def test_always_fires_at_probability_one(self):
        service = NotificationService(deliverers=mock_deliverers())
        simulator = FundingEventSimulator(service, probability=1.0, rng=random.Random(5))
        
        notification = simulator.tick()
        
        assert notification is not None
        assert re.fullmatch(r"New (Seed|Series [ABC]) Funding Round", notification.title)
        assert re.fullmatch(r".+ secured \$\d+M in .+ funding led by .+", notification.message)
        assert notification.related_to.type == "company"
        assert " " not in notification.related_to.id
        assert notification.event_type == EventCategory.FUNDING
    
    def test_never_fires_at_probability_zero(self):
        service = NotificationService(deliverers=mock_deliverers())
        simulator = FundingEventSimulator(service, probability=0.0)
        
        assert simulator.tick() is None
        assert service.get_notifications() == []
    
    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        simulator = FundingEventSimulator(NotificationService(deliverers=mock_deliverers()), interval_seconds=60)
        
        simulator.start()
        simulator.start()
        assert simulator.running is True
        
        simulator.stop()
        assert simulator.running is False
