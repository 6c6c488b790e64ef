"""
Shared fixtures for QuakeView tests
"""
import pytest

from QuakeView.feed.record_codec import Record, RecordCodec


CSV_HEADER = (
    "time,latitude,longitude,depth,mag,magType,nst,gap,dmin,rms,net,id,updated,"
    "place,type,horizontalError,depthError,magError,magNst,status,locationSource,magSource"
)


def make_row(record_id, time="2024-01-01T00:00:00.000Z", mag="2.5", latitude="10.0",
             longitude="20.0", depth="5.0", updated=None, place="10 km N of Somewhere, CA",
             net="us", **extra):
    """Raw row as the CSV reader would produce it"""
    row = {
        'id': record_id,
        'time': time,
        'latitude': latitude,
        'longitude': longitude,
        'depth': depth,
        'mag': mag,
        'magType': 'ml',
        'place': place,
        'net': net,
        'status': 'reviewed',
        'type': 'earthquake',
        'updated': updated if updated is not None else time,
    }
    row.update(extra)
    return row


def make_record(record_id, **kwargs) -> Record:
    result = RecordCodec().parse(make_row(record_id, **kwargs))
    assert isinstance(result, Record), result
    return result


def csv_line(record_id, time="2024-01-01T00:00:00.000Z", mag="2.5", latitude="10.0",
             longitude="20.0", depth="5.0", place="Somewhere", updated=None):
    """One data line matching CSV_HEADER"""
    updated = updated or time
    return (
        f'{time},{latitude},{longitude},{depth},{mag},ml,12,80,0.1,0.2,us,{record_id},'
        f'{updated},"{place}",earthquake,0.5,0.7,0.1,10,reviewed,us,us'
    )


def build_csv(lines):
    return "\n".join([CSV_HEADER] + list(lines)) + "\n"


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture
def numbered_records():
    """Records q0..q{n-1} with increasing magnitude and time"""
    def factory(count, prefix="q"):
        return [
            make_record(
                f"{prefix}{i}",
                mag=f"{(i % 90) / 10:.1f}",
                time=f"2024-01-{1 + i // 1440 % 28:02d}T{i // 60 % 24:02d}:{i % 60:02d}:00.000Z",
            )
            for i in range(count)
        ]
    return factory
