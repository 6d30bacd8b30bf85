"""
Unit tests for the ExaminationWizard state machine.

Runs against MemorySink, no database:
1. start / resume at a step / unknown category
2. step gating on next(), free prev()
3. reset of one step's fields
4. cancel from step 1
5. submit: success, rejection, transport failure, busy, closed session
6. end-to-end scenarios for balita and lansia
"""
from datetime import date

import pytest

from posyandu.exceptions import SubmissionRejected, TransportFailure
from posyandu.submission import SubmissionAdapter
from posyandu.wizard import ExaminationWizard
from posyandu.wizard.controller import NOTICE_RESET
from posyandu.wizard.steps import WizardStatus, WizardStep
from posyandu.wizard.vocabularies import ADL_DOMAINS, TBC_NONE

from conftest import error_codes, error_fields, make_participant


def fill_balita(wizard, state):
    state = wizard.edit_many(state, {"umur_bulan": "24", "berat_badan": "12.5"})
    return wizard.set_tags(state, "skrining_tbc", [TBC_NONE])


def fill_visit(wizard, state, lokasi="posyandu", rujuk=False):
    return wizard.edit_many(state, {
        "tanggal_kunjungan": date.today().isoformat(),
        "lokasi": lokasi,
        "rujuk": rujuk,
    })


def to_confirmation(wizard, state):
    state = wizard.next(state)
    assert state.step == WizardStep.TIME_LOCATION, state.errors
    state = fill_visit(wizard, state)
    state = wizard.next(state)
    assert state.step == WizardStep.CONFIRMATION, state.errors
    return state


class TestStart:

    def test_starts_on_verification(self, wizard, balita):
        state = wizard.start(balita)
        assert state.step == WizardStep.VERIFICATION
        assert state.status == WizardStatus.ACTIVE
        assert state.location == "?step=1"
        assert state.errors == []

    def test_unknown_category_aborts(self, wizard):
        state = wizard.start(make_participant("manula"))
        assert state.status == WizardStatus.ABORTED
        assert error_codes(state) == ["UNKNOWN_CATEGORY"]

        after = wizard.next(state)
        assert after.status == WizardStatus.ABORTED
        assert error_codes(after) == ["SESSION_CLOSED"]

    def test_resume_stops_at_first_failing_step(self, wizard, balita):
        state = wizard.start(balita, step="3")
        assert state.step == WizardStep.CATEGORY_EXAM
        assert "umur_bulan" in error_fields(state)

    def test_resume_with_prefilled_measurements(self, wizard, balita):
        previous = {"umur_bulan": "20", "berat_badan": "11"}
        state = wizard.start(balita, step=4, previous=previous)
        # visit data is never prefilled, so step 3 stops the walk
        assert state.step == WizardStep.TIME_LOCATION
        assert "lokasi" in error_fields(state)

    @pytest.mark.parametrize("raw", ["abc", "0", "9", None, ""])
    def test_invalid_step_falls_back_to_first(self, wizard, balita, raw):
        assert wizard.start(balita, step=raw).step == WizardStep.VERIFICATION


class TestNavigation:

    def test_step_one_has_no_gating(self, wizard, balita):
        state = wizard.next(wizard.start(balita))
        assert state.step == WizardStep.CATEGORY_EXAM

    def test_missing_required_field_blocks(self, wizard, balita):
        state = wizard.next(wizard.start(balita))
        state = wizard.edit(state, "umur_bulan", "24")
        blocked = wizard.next(state)
        assert blocked.step == WizardStep.CATEGORY_EXAM
        assert error_fields(blocked) == ["berat_badan"]
        assert error_codes(blocked) == ["VALIDATION_ERROR"]

    def test_complete_step_advances_exactly_one(self, wizard, balita):
        state = fill_balita(wizard, wizard.next(wizard.start(balita)))
        following = wizard.next(state)
        assert following.step == WizardStep.TIME_LOCATION
        assert following.location == "?step=3"
        assert following.errors == []

    @pytest.mark.parametrize("field, value", [
        ("berat_badan", "dua belas"),
        ("berat_badan", "0"),
        ("umur_bulan", "2.5"),
        ("panjang_badan", "-80"),
        ("kesimpulan_bb", "TURUN"),
    ])
    def test_malformed_values_block(self, wizard, balita, field, value):
        state = fill_balita(wizard, wizard.next(wizard.start(balita)))
        state = wizard.edit(state, field, value)
        blocked = wizard.next(state)
        assert blocked.step == WizardStep.CATEGORY_EXAM
        assert field in error_fields(blocked)

    def test_blood_pressure_format(self, wizard, lansia):
        state = wizard.next(wizard.start(lansia))
        state = wizard.edit_many(state, {"berat_badan": "60", "tekanan_darah": "120-80"})
        assert error_fields(wizard.next(state)) == ["tekanan_darah"]

        state = wizard.edit(state, "tekanan_darah", "120/80")
        assert wizard.next(state).step == WizardStep.TIME_LOCATION

    def test_visit_step_requires_location_and_referral(self, wizard, balita):
        state = wizard.next(fill_balita(wizard, wizard.next(wizard.start(balita))))
        blocked = wizard.next(state)
        assert blocked.step == WizardStep.TIME_LOCATION
        assert set(error_fields(blocked)) == {"lokasi", "rujuk"}

    def test_referral_decision_can_be_optional(self, sink, settings, balita):
        relaxed = settings.model_copy(update={"require_referral_decision": False})
        wizard = ExaminationWizard(SubmissionAdapter(sink), settings=relaxed)
        state = wizard.next(fill_balita(wizard, wizard.next(wizard.start(balita))))
        state = wizard.edit(state, "lokasi", "kunjungan_rumah")
        assert wizard.next(state).step == WizardStep.CONFIRMATION

    def test_bad_date_and_location(self, wizard, balita):
        state = wizard.next(fill_balita(wizard, wizard.next(wizard.start(balita))))
        state = wizard.edit_many(state, {"tanggal_kunjungan": "17/08/2024", "lokasi": "puskesmas", "rujuk": True})
        assert set(error_fields(wizard.next(state))) == {"tanggal_kunjungan", "lokasi"}

    def test_prev_keeps_forward_data(self, wizard, balita):
        state = wizard.next(fill_balita(wizard, wizard.next(wizard.start(balita))))
        state = wizard.edit(state, "lokasi", "posyandu")
        back = wizard.prev(wizard.prev(state))
        assert back.step == WizardStep.VERIFICATION
        assert back.draft.lokasi == "posyandu"
        assert back.draft.berat_badan == "12.5"

    def test_next_on_confirmation_stays(self, wizard, balita):
        state = to_confirmation(wizard, fill_balita(wizard, wizard.next(wizard.start(balita))))
        assert wizard.next(state).step == WizardStep.CONFIRMATION

    def test_transitions_do_not_modify_input_state(self, wizard, balita):
        state = wizard.next(wizard.start(balita))
        edited = wizard.edit(state, "berat_badan", "12.5")
        assert state.draft.berat_badan == ""
        assert edited.draft.berat_badan == "12.5"
        assert edited.draft is not state.draft


class TestEditing:

    def test_read_only_field(self, wizard, lansia):
        state = wizard.start(lansia)
        edited = wizard.edit(state, "jumlah_skor_adl", 30)
        assert error_codes(edited) == ["READ_ONLY_FIELD"]
        assert edited.draft.jumlah_skor_adl == 0

    def test_failed_edit_keeps_draft(self, wizard, lansia):
        state = wizard.edit(wizard.start(lansia), "berat_badan", "60")
        failed = wizard.edit_many(state, {"lokasi": "posyandu", "adl": {"mobilitas": "banyak"}})
        assert failed.draft.lokasi == ""
        assert failed.draft.berat_badan == "60"
        assert error_fields(failed) == ["adl"]

    def test_toggle_tag(self, wizard, lansia):
        state = wizard.toggle_tag(wizard.start(lansia), "riwayat_diri", "Stroke")
        state = wizard.toggle_tag(state, "riwayat_diri", "Hipertensi")
        assert state.draft.riwayat_diri == ["Hipertensi", "Stroke"]
        state = wizard.toggle_tag(state, "riwayat_diri", "Tidak Ada")
        assert state.draft.riwayat_diri == ["Tidak Ada"]

    def test_toggle_rejects_non_text_tag(self, wizard, lansia):
        state = wizard.toggle_tag(wizard.start(lansia), "riwayat_diri", "Stroke")
        failed = wizard.toggle_tag(state, "riwayat_diri", 5)
        assert error_codes(failed) == ["VALIDATION_ERROR"]
        assert error_fields(failed) == ["riwayat_diri"]
        assert failed.draft.riwayat_diri == ["Stroke"]

    def test_set_tags_rejects_plain_string(self, wizard, lansia):
        failed = wizard.set_tags(wizard.start(lansia), "riwayat_diri", "Stroke")
        assert error_fields(failed) == ["riwayat_diri"]
        assert failed.draft.riwayat_diri == []

    def test_unanswered_adl_has_no_level(self, wizard, lansia):
        state = wizard.next(wizard.start(lansia))
        assert state.draft.tingkat_kemandirian == "-"
        state = wizard.edit(state, "adl", {"mobilitas": 3})
        assert state.draft.tingkat_kemandirian == "berat"


class TestReset:

    def test_reset_exam_step_keeps_visit_data(self, wizard, balita):
        state = wizard.next(fill_balita(wizard, wizard.next(wizard.start(balita))))
        state = wizard.edit(state, "lokasi", "posyandu")
        state = wizard.prev(state)

        reset = wizard.reset_step(state)
        assert reset.notice == NOTICE_RESET
        assert reset.draft.umur_bulan == ""
        assert reset.draft.berat_badan == ""
        assert reset.draft.skrining_tbc == []
        assert reset.draft.lokasi == "posyandu"
        assert reset.step == WizardStep.CATEGORY_EXAM

    def test_reset_visit_step(self, wizard, balita):
        state = wizard.next(fill_balita(wizard, wizard.next(wizard.start(balita))))
        state = fill_visit(wizard, state, rujuk=True)

        reset = wizard.reset_step(state, WizardStep.TIME_LOCATION)
        assert reset.draft.lokasi == ""
        assert reset.draft.rujuk is None
        assert reset.draft.tanggal_kunjungan == date.today().isoformat()
        assert reset.draft.berat_badan == "12.5"

    def test_reset_recomputes_derived(self, wizard, lansia):
        state = wizard.next(wizard.start(lansia))
        state = wizard.edit_many(state, {"berat_badan": "60", "adl": {"mobilitas": 3}})
        assert state.draft.imt == "normal"

        reset = wizard.reset_step(state)
        assert reset.draft.imt == "-"
        assert reset.draft.jumlah_skor_adl == 0
        assert reset.draft.tinggi_badan == ""

    def test_verification_has_nothing_to_reset(self, wizard, balita):
        state = wizard.start(balita)
        reset = wizard.reset_step(state)
        assert reset.notice
        assert reset.notice != NOTICE_RESET
        assert reset.draft == state.draft

    @pytest.mark.parametrize("step", [7, 0, "dua"])
    def test_unknown_step_is_reported(self, wizard, balita, step):
        state = wizard.next(wizard.start(balita))
        result = wizard.reset_step(state, step)
        assert error_fields(result) == ["step"]
        assert result.step == WizardStep.CATEGORY_EXAM
        assert result.notice is None


class TestCancel:

    def test_back_from_step_one_cancels(self, wizard, balita):
        state = wizard.edit(wizard.start(balita), "berat_badan", "12.5")
        cancelled = wizard.prev(state)
        assert cancelled.status == WizardStatus.CANCELLED
        assert cancelled.draft.berat_badan == ""

    def test_cancel_leaves_no_trace(self, wizard, sink, balita):
        state = wizard.next(wizard.start(balita))
        state = fill_balita(wizard, state)
        state = wizard.prev(state)
        cancelled = wizard.cancel(state)
        assert cancelled.status == WizardStatus.CANCELLED
        assert sink.saved == []

        fresh = wizard.start(balita, previous=sink.latest_for(balita.id))
        assert fresh.draft.umur_bulan == ""
        assert fresh.draft.berat_badan == ""
        assert fresh.draft.skrining_tbc == []

    def test_cancelled_session_is_closed(self, wizard, balita):
        cancelled = wizard.cancel(wizard.start(balita))
        assert error_codes(wizard.edit(cancelled, "berat_badan", "1")) == ["SESSION_CLOSED"]


class TestSubmit:

    def test_only_from_confirmation(self, wizard, sink, balita):
        state = fill_balita(wizard, wizard.next(wizard.start(balita)))
        result = wizard.submit(state)
        assert error_codes(result) == ["NOT_ON_CONFIRMATION"]
        assert result.step == WizardStep.CATEGORY_EXAM
        assert sink.saved == []

    def test_success_closes_session(self, wizard, sink, balita):
        state = to_confirmation(wizard, fill_balita(wizard, wizard.next(wizard.start(balita))))
        done = wizard.submit(state)
        assert done.status == WizardStatus.SUBMITTED
        assert done.record_id == "rec-1"
        assert done.notice
        assert len(sink.saved) == 1

        again = wizard.edit(done, "berat_badan", "13")
        assert error_codes(again) == ["SESSION_CLOSED"]
        assert again.draft.berat_badan == "12.5"
        assert error_codes(wizard.submit(done)) == ["SESSION_CLOSED"]
        assert len(sink.saved) == 1

    def test_rejection_keeps_draft_on_confirmation(self, wizard, sink, balita):
        sink.error = SubmissionRejected(
            message="Berat badan harus lebih dari 0.",
            detail={"errors": [{"field": "berat_badan", "message": "Berat badan harus lebih dari 0."}]},
        )
        state = to_confirmation(wizard, fill_balita(wizard, wizard.next(wizard.start(balita))))
        failed = wizard.submit(state)
        assert failed.status == WizardStatus.ACTIVE
        assert failed.step == WizardStep.CONFIRMATION
        assert failed.errors[0].message == "Berat badan harus lebih dari 0."
        assert failed.errors[0].field is None
        assert failed.field_errors() == {"berat_badan": "Berat badan harus lebih dari 0."}
        assert failed.draft.berat_badan == "12.5"

        sink.error = None
        retried = wizard.submit(failed)
        assert retried.status == WizardStatus.SUBMITTED
        assert len(sink.saved) == 1

    def test_transport_failure(self, wizard, sink, balita):
        sink.error = TransportFailure(message="Gagal terhubung ke server")
        state = to_confirmation(wizard, fill_balita(wizard, wizard.next(wizard.start(balita))))
        failed = wizard.submit(state)
        assert error_codes(failed) == ["TRANSPORT_FAILURE"]
        assert failed.step == WizardStep.CONFIRMATION
        assert failed.is_open

    def test_unexpected_error_is_a_transport_failure(self, wizard, sink, balita):
        sink.error = RuntimeError("boom")
        state = to_confirmation(wizard, fill_balita(wizard, wizard.next(wizard.start(balita))))
        failed = wizard.submit(state)
        assert error_codes(failed) == ["TRANSPORT_FAILURE"]
        assert failed.draft.umur_bulan == "24"

    def test_busy_while_saving(self, wizard, sink, balita):
        state = to_confirmation(wizard, fill_balita(wizard, wizard.next(wizard.start(balita))))
        saving = wizard.begin_submit(state)
        assert saving.status == WizardStatus.SAVING

        assert error_codes(wizard.submit(saving)) == ["SUBMISSION_IN_PROGRESS"]
        assert error_codes(wizard.prev(saving)) == ["SUBMISSION_IN_PROGRESS"]
        assert error_codes(wizard.edit(saving, "berat_badan", "1")) == ["SUBMISSION_IN_PROGRESS"]
        assert sink.saved == []

        done = wizard.finish_submit(saving)
        assert done.status == WizardStatus.SUBMITTED
        assert len(sink.saved) == 1

    def test_revalidates_before_sending(self, wizard, sink, balita):
        state = to_confirmation(wizard, fill_balita(wizard, wizard.next(wizard.start(balita))))
        state = wizard.edit(state, "berat_badan", "")
        failed = wizard.submit(state)
        assert "berat_badan" in error_fields(failed)
        assert failed.status == WizardStatus.ACTIVE
        assert sink.saved == []


class TestScenarios:

    def test_balita_end_to_end(self, wizard, sink, balita):
        state = wizard.next(wizard.start(balita))
        state = fill_balita(wizard, state)
        state = to_confirmation(wizard, state)
        done = wizard.submit(state)
        assert done.status == WizardStatus.SUBMITTED

        body = sink.saved[0].as_request()
        assert body["umur_bulan"] == "24"
        assert body["berat_badan"] == "12.5"
        assert body["skrining_tbc"] == [TBC_NONE]
        assert body["lokasi"] == "posyandu"
        assert body["rujuk"] is False
        assert body["kategori"] == "balita"
        for adult_only in ("skrining_puma", "jumlah_skor_puma", "kesimpulan_puma",
                           "adl", "jumlah_skor_adl", "tingkat_kemandirian"):
            assert adult_only not in body

    def test_lansia_end_to_end(self, wizard, sink, lansia):
        state = wizard.next(wizard.start(lansia))
        state = wizard.edit(state, "berat_badan", "60")
        for key, points in zip(ADL_DOMAINS, [3, 3, 3, 2, 3, 3, 3, 3]):
            state = wizard.edit(state, "adl", {key: points})
        assert state.draft.jumlah_skor_adl == 23
        assert state.draft.tingkat_kemandirian == "mandiri"

        state = to_confirmation(wizard, state)
        done = wizard.submit(state)
        assert done.status == WizardStatus.SUBMITTED

        body = sink.saved[0].as_request()
        assert body["jumlah_skor_adl"] == 23
        assert body["tingkat_kemandirian"] == "mandiri"
        assert len(body["adl"]) == 8
        assert "mobilitas:3" in body["adl"]
        for copd in ("skrining_puma", "jumlah_skor_puma", "kesimpulan_puma"):
            assert copd not in body
