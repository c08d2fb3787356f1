from keycustody.models.schemas import ActorMetadata, ActorPreference


def test_nothing_saved_by_default(preferences):
    assert preferences.load() == ActorPreference()
    assert preferences.prefill() is None


def test_remembered_actor_round_trips(preferences):
    actor = ActorMetadata(rank="ME4", name="Ng", number="98765432")
    preferences.save(ActorPreference(remember=True, actor=actor))
    assert preferences.prefill() == actor


def test_forgetting_deletes_file(preferences):
    preferences.save(ActorPreference(remember=True, actor=ActorMetadata(name="Ng")))
    preferences.save(ActorPreference(remember=False, actor=ActorMetadata(name="Ng")))
    assert not preferences.path.exists()
    assert preferences.prefill() is None


def test_corrupt_file_is_ignored(preferences):
    preferences.path.write_text("{not json", encoding="utf-8")
    assert preferences.load() == ActorPreference()
