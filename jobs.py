from errors import NotFoundError, ValidationError
from models import Job
from store import reads, transaction

JOB_FIELDS = ("title", "company", "location", "salary", "description")


class JobService:

    def __init__(self, session):
        self.session = session

    @reads
    def list_jobs(self):
        return [job.to_dict() for job in self.session.query(Job).order_by(Job.id.desc()).all()]

    @reads
    def get_job(self, job_id):
        job = self.session.get(Job, job_id)
        if job is None:
            raise NotFoundError("Job %s not found." % job_id)
        return job

    def create_job(self, title, company, location, salary, description):
        values = _job_values(title, company, location, salary, description)
        with transaction(self.session):
            job = Job(**values)
            self.session.add(job)
        return job.id

    def update_job(self, job_id, title, company, location, salary, description):
        values = _job_values(title, company, location, salary, description)
        with transaction(self.session):
            job = self.get_job(job_id)
            for name, value in values.items():
                setattr(job, name, value)
        return job

    def delete_job(self, job_id):
        # Applications keep their own copy of title/company, nothing to cascade
        with transaction(self.session):
            self.session.delete(self.get_job(job_id))


def _job_values(*values):
    values = dict(zip(JOB_FIELDS, values))
    missing = [name for name, value in values.items() if value is None]
    if missing:
        raise ValidationError("Missing job field(s): %s" % ", ".join(missing))
    return values
