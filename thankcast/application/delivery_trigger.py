import logging

from thankcast.domain.entities.compositing_job import CompositingJob
from thankcast.domain.errors import DeliveryFailure
from thankcast.infrastructure.delivery_gateway import DeliveryGateway

logger = logging.getLogger(__name__)


class DeliveryTrigger:
    """Hands a finished job to the email sender. Never raises."""

    def __init__(self, gateway: DeliveryGateway):
        self.gateway = gateway

    def should_deliver(self, job: CompositingJob) -> bool:
        return job.wants_email_delivery

    def build_payload(self, job: CompositingJob, signed_video_url: str) -> dict:
        return {
            "jobId": job.id,
            "videoUrl": signed_video_url,
            "recipientEmail": job.recipient_email,
            "recipientName": job.recipient_name,
            "emailSubject": job.email_subject,
            "emailBody": job.email_body,
            "childName": job.child_name,
            "giftName": job.gift_name,
            "eventName": job.event_name,
        }

    def deliver(self, job: CompositingJob, signed_video_url: str) -> bool:
        if not self.should_deliver(job):
            return False
        try:
            logger.info(f"✉️ Sending video email for job {job.id} to {job.recipient_email}")
            self.gateway.send(self.build_payload(job, signed_video_url))
        except DeliveryFailure as e:
            logger.error(f"❌ Delivery failed for job {job.id}: {e}")
            return False
        except Exception as e:
            # gateways should wrap their errors, but an unwrapped one must not fail the job
            logger.exception(f"❌ Unexpected delivery error for job {job.id}: {e}")
            return False
        logger.info(f"✅ Email handed off for job {job.id}")
        return True
